"""
Configuration validation module for the market maker.
Checks required keys, types and ranges; any violation is a fatal
ConfigurationError at startup.
"""

from typing import Any, Dict

from ...trading.strategies.market_making.modules.order_manager import SIZE_RAMPS
from ...utils.errors import ConfigurationError
from ...utils.logger import setup_logger

logger = setup_logger(__name__)

_number = (int, float)


class ConfigValidator:
    """Validates the market maker configuration"""

    def __init__(self, config):
        self.config = config
        self.required_keys = [
            'vega.data_node_url',
            'vega.market_id',
            'strategy.q_lower',
            'strategy.q_upper',
        ]
        self.live_required_keys = [
            'vega.wallet_url',
            'vega.wallet_token',
            'vega.public_key',
        ]

    def validate(self):
        """Raise ConfigurationError on the first problem found"""
        self._validate_schema()
        self._validate_types()
        self._validate_ranges()
        logger.info("Configuration validated")

    def _validate_schema(self):
        for section in ('vega', 'reference', 'strategy'):
            if not self.config.has_section(section):
                raise ConfigurationError(f"Missing required config section: {section}")

        required = list(self.required_keys)
        if not self.config.get('strategy.dryrun'):
            required += self.live_required_keys
        for key in required:
            if self.config.get(key) in (None, ''):
                raise ConfigurationError(f"Missing required config key: {key}")

    def _validate_types(self):
        type_checks = [
            ('strategy.q_lower', int, lambda x: True),
            ('strategy.q_upper', int, lambda x: True),
            ('strategy.kappa', _number, lambda x: x > 0),
            ('strategy.lambd', _number, lambda x: x > 0),
            ('strategy.kappa_weight', _number, lambda x: 0 <= x <= 1),
            ('strategy.phi', _number, lambda x: x >= 0),
            ('strategy.estimation_window', _number, lambda x: x > 0),
            ('strategy.levels', int, lambda x: x > 0),
            ('strategy.step', _number, lambda x: x > 0),
            ('strategy.tick_size', _number, lambda x: x > 0),
            ('strategy.volume_of_notional', _number, lambda x: x > 0),
            ('strategy.pos_lim_scaling', _number, lambda x: x >= 1),
            ('strategy.price_range_factor', _number, lambda x: x > 0),
            ('strategy.price_range_safety', _number, lambda x: x >= 0),
            ('strategy.dispose_q_lower', int, lambda x: True),
            ('strategy.dispose_q_upper', int, lambda x: True),
            ('strategy.dispose_prob', _number, lambda x: 0 <= x <= 1),
            ('strategy.gtt_length', _number, lambda x: x > 0),
            ('strategy.submission_rate', _number, lambda x: x > 0),
            ('strategy.size_ramp', str, lambda x: x in SIZE_RAMPS),
        ]

        for key, expected_type, validator in type_checks:
            value = self.config.get(key)

            # bool is an int subclass but never a valid number here
            if isinstance(value, bool) or not isinstance(value, expected_type):
                raise ConfigurationError(f"{key} must be of type {expected_type}, got {type(value)}")

            if not validator(value):
                raise ConfigurationError(f"{key} has invalid value: {value}")

    def _validate_ranges(self):
        q_lower = self.config.get('strategy.q_lower')
        q_upper = self.config.get('strategy.q_upper')
        if q_lower >= q_upper:
            raise ConfigurationError(f"we need q_lower < q_upper, got {q_lower} >= {q_upper}")

        factor = self.config.get('strategy.price_range_factor')
        safety = self.config.get('strategy.price_range_safety')
        if safety >= factor:
            raise ConfigurationError(
                f"price_range_safety ({safety}) must be below price_range_factor ({factor})"
            )

        if not self.config.get('reference.use_vega_bidask') and not self.enabled_venues():
            raise ConfigurationError("at least one reference venue must be enabled")

        if self.config.get('strategy.dispose_q_lower') > q_lower or \
                self.config.get('strategy.dispose_q_upper') < q_upper:
            logger.warning("Disposal thresholds sit inside the inventory bounds, "
                           "disposal orders will be posted before the bounds are reached")

    def enabled_venues(self) -> Dict[str, Dict[str, Any]]:
        venues = {}
        for venue, settings in (self.config.get('reference') or {}).items():
            if isinstance(settings, dict) and settings.get('enabled'):
                venues[venue] = settings
        return venues

    def get_config_summary(self) -> Dict[str, Any]:
        """Get a summary of the configuration"""
        return {
            'vega': {
                'data_node_url': self.config.get('vega.data_node_url'),
                'market_id': self.config.get('vega.market_id'),
                'has_wallet_token': bool(self.config.get('vega.wallet_token')),
                'public_key': self.config.get('vega.public_key'),
            },
            'reference': {
                'use_vega_bidask': self.config.get('reference.use_vega_bidask'),
                'venues': list(self.enabled_venues()),
            },
            'strategy': {
                'inventory_bounds': [self.config.get('strategy.q_lower'), self.config.get('strategy.q_upper')],
                'kappa': self.config.get('strategy.kappa'),
                'lambd': self.config.get('strategy.lambd'),
                'phi': self.config.get('strategy.phi'),
                'levels': self.config.get('strategy.levels'),
                'volume_of_notional': self.config.get('strategy.volume_of_notional'),
                'submission_rate': self.config.get('strategy.submission_rate'),
                'dryrun': self.config.get('strategy.dryrun'),
            },
        }
