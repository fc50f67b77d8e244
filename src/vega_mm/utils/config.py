"""
Configuration Manager - YAML-based configuration management
Loads the market maker configuration from a YAML file, fills in defaults for
missing keys and applies environment variable overrides (a local .env file is
honoured).

File: config.py
"""

import copy
import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

DEFAULT_CONFIG: Dict[str, Any] = {
    'vega': {
        'data_node_url': 'https://api.n00.testnet.vega.rocks',
        'data_node_ws_url': None,  # derived from data_node_url when empty
        'wallet_url': 'http://127.0.0.1:1789',
        'wallet_token': None,
        'public_key': None,
        'market_id': None,
        'request_timeout': 10,
    },
    'reference': {
        'use_vega_bidask': True,
        'binance': {
            'enabled': False,
            'url': 'https://api.binance.com',
            'symbol': 'BTCUSDT',
            'poll_interval': 1.0,
        },
        'bybit': {
            'enabled': False,
            'url': 'https://api.bybit.com',
            'symbol': 'BTCUSDT',
            'poll_interval': 1.0,
        },
    },
    'strategy': {
        'q_lower': -3,
        'q_upper': 3,
        'kappa': 0.5,
        'lambd': 0.2,
        'kappa_weight': 0.5,
        'kappa_blend': True,
        'phi': 0.1,
        'estimation_window': 1800,  # seconds
        'levels': 5,
        'step': 0.1,
        'tick_size': 0.01,
        'volume_of_notional': 1000,
        'pos_lim_scaling': 1.5,
        'price_range_factor': 0.05,
        'price_range_safety': 0.001,
        'dispose_q_lower': -2,
        'dispose_q_upper': 2,
        'dispose_prob': 0.1,
        'use_mid': False,
        'allow_negative_offset': False,
        'size_ramp': 'quadratic',
        'gtt_length': 60,  # seconds
        'submission_rate': 15.0,  # seconds
        'dryrun': True,
    },
    'logging': {
        'level': 'INFO',
        'log_dir': 'logs',
    },
}

# environment variable -> (dotted key, converter)
ENV_OVERRIDES = {
    'VEGA_DATA_NODE_URL': ('vega.data_node_url', str),
    'VEGA_WALLET_URL': ('vega.wallet_url', str),
    'VEGA_WALLET_TOKEN': ('vega.wallet_token', str),
    'VEGA_PUBLIC_KEY': ('vega.public_key', str),
    'VEGA_MARKET_ID': ('vega.market_id', str),
    'MM_DRYRUN': ('strategy.dryrun', lambda v: v.strip().lower() in ('1', 'true', 'yes', 'on')),
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = copy.deepcopy(base)
    for key, value in (override or {}).items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


class Config:
    """Configuration management"""

    def __init__(self, config_path: str = "configs/config.yaml", load_env: bool = True):
        self.config_path = Path(config_path)
        self.config = self._load_config()
        if load_env:
            load_dotenv()
            self._load_env_vars()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Config':
        """Build a configuration from an in-memory mapping (defaults applied)"""
        config = cls.__new__(cls)
        config.config_path = None
        config.config = _deep_merge(DEFAULT_CONFIG, data)
        return config

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file on top of the defaults"""
        if self.config_path.exists():
            with open(self.config_path, 'r') as f:
                return _deep_merge(DEFAULT_CONFIG, yaml.safe_load(f) or {})
        return copy.deepcopy(DEFAULT_CONFIG)

    def _load_env_vars(self):
        """Load environment variables and override config"""
        for env_name, (key, convert) in ENV_OVERRIDES.items():
            if env_name in os.environ:
                self.set(key, convert(os.environ[env_name]))

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value"""
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def has(self, key: str) -> bool:
        sentinel = object()
        return self.get(key, sentinel) is not sentinel

    def has_section(self, section: str) -> bool:
        return isinstance(self.config.get(section), dict)

    def set(self, key: str, value: Any):
        """Set configuration value"""
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if k not in config:
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def save(self):
        """Save configuration to file"""
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(self.config_path, 'w') as f:
            yaml.dump(self.config, f, default_flow_style=False)
