import math
import unittest

from vega_mm.trading.strategies.market_making.modules.offset_calculator import (
    calculate_offsets,
    offsets_from_position,
)
from vega_mm.utils.errors import ConfigurationError


class TestOffsetCalculator(unittest.TestCase):
    """Test optimal offset tables and position lookup"""

    def setUp(self):
        self.q_lower, self.q_upper = -3, 3
        self.buy, self.sell = calculate_offsets(self.q_lower, self.q_upper, 0.5, 0.2, 0.1)

    def offsets(self, position):
        return offsets_from_position(self.buy, self.sell, self.q_lower, self.q_upper, position)

    def test_table_lengths(self):
        self.assertEqual(len(self.buy), 6)
        self.assertEqual(len(self.sell), 6)

    def test_closed_form(self):
        half_width = math.sqrt(0.1 * math.e / 0.2 / 0.5) / 2.0
        self.assertAlmostEqual(self.buy[0], 2.0 - 5 * half_width)
        self.assertAlmostEqual(self.sell[0], 2.0 + 5 * half_width)

    def test_buy_offsets_grow_with_inventory(self):
        self.assertTrue(all(a < b for a, b in zip(self.buy, self.buy[1:])))
        self.assertTrue(all(a > b for a, b in zip(self.sell, self.sell[1:])))

    def test_symmetric_at_flat_position(self):
        offsets = self.offsets(0)
        self.assertTrue(offsets.can_ask)
        self.assertTrue(offsets.can_bid)
        self.assertAlmostEqual(offsets.ask_offset, offsets.bid_offset)

    def test_lower_bound(self):
        offsets = self.offsets(self.q_lower)
        self.assertFalse(offsets.can_ask)
        self.assertTrue(offsets.can_bid)
        self.assertTrue(math.isinf(offsets.ask_offset))

        below = self.offsets(self.q_lower - 5)
        self.assertFalse(below.can_ask)
        self.assertEqual(below.bid_offset, offsets.bid_offset)

    def test_upper_bound(self):
        offsets = self.offsets(self.q_upper)
        self.assertTrue(offsets.can_ask)
        self.assertFalse(offsets.can_bid)
        self.assertTrue(math.isinf(offsets.bid_offset))

        above = self.offsets(self.q_upper + 2)
        self.assertEqual(above.ask_offset, offsets.ask_offset)

    def test_bound_symmetry(self):
        self.assertAlmostEqual(self.offsets(self.q_upper).ask_offset,
                               self.offsets(self.q_lower).bid_offset)

    def test_invalid_parameters(self):
        with self.assertRaises(ConfigurationError):
            calculate_offsets(3, 3, 0.5, 0.2, 0.1)
        with self.assertRaises(ConfigurationError):
            calculate_offsets(-3, 3, 0.0, 0.2, 0.1)
        with self.assertRaises(ConfigurationError):
            calculate_offsets(-3, 3, 0.5, -1.0, 0.1)
        with self.assertRaises(ConfigurationError):
            offsets_from_position(self.buy, self.sell, 2, 1, 0)


if __name__ == '__main__':
    unittest.main()
