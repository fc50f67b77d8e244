"""
Data model for the market state store.

Prices and sizes coming from the data node are integers encoded as strings in
market precision; Decimals converts between those units and real values.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from ....utils.errors import ConfigurationError, TransientDataError
from ....utils.parsing import parse_float, require_int

BOOK_HISTORY_CAPACITY = 1000
TRADES_CAPACITY = 10000


def _require_mapping(data: Any, kind: str) -> Dict[str, Any]:
    if not isinstance(data, dict):
        raise TransientDataError(f"{kind} entry is not an object: {data!r}")
    return data


@dataclass(frozen=True)
class Market:
    id: str
    name: str
    decimal_places: int
    position_decimal_places: int
    settlement_asset: str

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Market':
        instrument = data.get('tradableInstrument', {}).get('instrument', {})
        product = None
        for kind in ('future', 'perpetual'):
            if instrument.get(kind):
                product = instrument[kind]
                break
        if product is None:
            if instrument.get('spot'):
                raise ConfigurationError(f"spot market {data.get('id')} not supported")
            raise TransientDataError(f"market {data.get('id')} has no settlement asset")

        return cls(
            id=data['id'],
            name=instrument.get('name', data['id']),
            decimal_places=require_int(data.get('decimalPlaces', 0), 'decimalPlaces'),
            position_decimal_places=require_int(
                data.get('positionDecimalPlaces', 0), 'positionDecimalPlaces'
            ),
            settlement_asset=product['settlementAsset'],
        )


@dataclass(frozen=True)
class Asset:
    id: str
    symbol: str
    decimals: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'Asset':
        details = data.get('details', {})
        return cls(
            id=data['id'],
            symbol=details.get('symbol', ''),
            decimals=require_int(details.get('decimals', 0), 'decimals'),
        )


class Decimals:
    """Scaling factors between real values and market integer units"""

    def __init__(self, market: Market, asset: Asset):
        self.price_decimals = market.decimal_places
        self.position_decimals = market.position_decimal_places
        self.asset_decimals = asset.decimals
        self.price_factor = 10.0 ** self.price_decimals
        self.position_factor = 10.0 ** self.position_decimals

    def from_market_price_precision(self, price: float) -> float:
        return price / self.price_factor

    def to_market_price_precision(self, price: float) -> float:
        return price * self.price_factor

    def to_market_position_precision(self, position: float) -> float:
        return position * self.position_factor

    def __repr__(self) -> str:
        return (f"Decimals(price={self.price_decimals}, position={self.position_decimals}, "
                f"asset={self.asset_decimals})")


@dataclass(frozen=True)
class BookSnapshot:
    """Best bid/ask as streamed by the data node, raw strings in market units"""
    timestamp: int
    best_bid: str = ''
    best_ask: str = ''
    mark_price: str = ''

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'BookSnapshot':
        data = _require_mapping(data, "market data")
        return cls(
            timestamp=require_int(data.get('timestamp'), 'timestamp'),
            best_bid=str(data.get('bestBidPrice', '')),
            best_ask=str(data.get('bestOfferPrice', '')),
            mark_price=str(data.get('markPrice', '')),
        )

    def bid(self) -> Optional[float]:
        return parse_float(self.best_bid)

    def ask(self) -> Optional[float]:
        return parse_float(self.best_ask)


@dataclass
class TradeRecord:
    timestamp: int
    price: float
    size: int
    best_bid: float = 0.0
    best_ask: float = 0.0

    @property
    def mid(self) -> float:
        return (self.best_bid + self.best_ask) / 2.0


@dataclass(frozen=True)
class PositionRecord:
    party_id: str
    market_id: str
    open_volume: int

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> 'PositionRecord':
        data = _require_mapping(data, "position")
        return cls(
            party_id=data['partyId'],
            market_id=data.get('marketId', ''),
            open_volume=require_int(data.get('openVolume', 0), 'openVolume'),
        )
