import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import yaml

from vega_mm.main.modules.config_validator import ConfigValidator
from vega_mm.utils.config import Config
from vega_mm.utils.errors import ConfigurationError


def valid_config(**strategy):
    data = {
        'vega': {'data_node_url': 'https://api.example.com', 'market_id': 'm1'},
        'strategy': dict(strategy),
    }
    return Config.from_dict(data)


class TestConfig(unittest.TestCase):
    """Test configuration loading"""

    def test_defaults_when_file_missing(self):
        with patch.dict(os.environ, {}, clear=True):
            config = Config('does/not/exist.yaml', load_env=False)
        self.assertEqual(config.get('strategy.q_lower'), -3)
        self.assertTrue(config.get('strategy.dryrun'))
        self.assertIsNone(config.get('strategy.missing'))
        self.assertEqual(config.get('strategy.missing', 7), 7)

    def test_yaml_merged_over_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'config.yaml'
            path.write_text(yaml.safe_dump({'strategy': {'levels': 9}, 'vega': {'market_id': 'abc'}}))
            config = Config(str(path), load_env=False)

        self.assertEqual(config.get('strategy.levels'), 9)
        self.assertEqual(config.get('strategy.step'), 0.1)
        self.assertEqual(config.get('vega.market_id'), 'abc')
        self.assertTrue(config.has('reference.binance.url'))

    def test_environment_overrides(self):
        env = {'VEGA_MARKET_ID': 'from-env', 'VEGA_WALLET_TOKEN': 'secret', 'MM_DRYRUN': 'false'}
        with patch.dict(os.environ, env, clear=True):
            config = Config('does/not/exist.yaml', load_env=True)

        self.assertEqual(config.get('vega.market_id'), 'from-env')
        self.assertEqual(config.get('vega.wallet_token'), 'secret')
        self.assertFalse(config.get('strategy.dryrun'))

    def test_set_and_save(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / 'nested' / 'config.yaml'
            config = Config(str(path), load_env=False)
            config.set('strategy.levels', 2)
            config.save()

            reloaded = Config(str(path), load_env=False)
            self.assertEqual(reloaded.get('strategy.levels'), 2)


class TestConfigValidator(unittest.TestCase):
    """Test configuration validation"""

    def test_defaults_with_market_are_valid(self):
        ConfigValidator(valid_config()).validate()

    def test_missing_market_id(self):
        config = Config.from_dict({'vega': {'market_id': None}})
        with self.assertRaises(ConfigurationError):
            ConfigValidator(config).validate()

    def test_live_mode_needs_wallet(self):
        with self.assertRaises(ConfigurationError):
            ConfigValidator(valid_config(dryrun=False)).validate()

        config = valid_config(dryrun=False)
        config.set('vega.wallet_token', 'token')
        config.set('vega.public_key', 'pubkey')
        ConfigValidator(config).validate()

    def test_inverted_bounds(self):
        with self.assertRaises(ConfigurationError):
            ConfigValidator(valid_config(q_lower=3, q_upper=-3)).validate()

    def test_type_errors(self):
        for key, value in (('levels', 2.5), ('levels', True), ('step', 'wide'),
                           ('tick_size', 0), ('submission_rate', -1), ('size_ramp', 'cubic'),
                           ('dispose_prob', 1.5)):
            with self.subTest(key=key, value=value):
                with self.assertRaises(ConfigurationError):
                    ConfigValidator(valid_config(**{key: value})).validate()

    def test_safety_margin_below_range_factor(self):
        with self.assertRaises(ConfigurationError):
            ConfigValidator(valid_config(price_range_factor=0.01, price_range_safety=0.02)).validate()

    def test_needs_a_reference_venue(self):
        config = valid_config()
        config.set('reference.use_vega_bidask', False)
        with self.assertRaises(ConfigurationError):
            ConfigValidator(config).validate()

        config.set('reference.bybit.enabled', True)
        validator = ConfigValidator(config)
        validator.validate()
        self.assertEqual(list(validator.enabled_venues()), ['bybit'])

    def test_summary(self):
        summary = ConfigValidator(valid_config()).get_config_summary()
        self.assertEqual(summary['vega']['market_id'], 'm1')
        self.assertFalse(summary['vega']['has_wallet_token'])
        self.assertEqual(summary['strategy']['inventory_bounds'], [-3, 3])


if __name__ == '__main__':
    unittest.main()
