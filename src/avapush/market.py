"""Order depth payload types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class OrderDepthLevel:
    """Bid/ask prices and volumes at a single price level."""

    buy_price: float = 0.0
    buy_volume: float = 0.0
    sell_price: float = 0.0
    sell_volume: float = 0.0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderDepthLevel:
        return cls(
            buy_price=data.get("buyPrice", 0.0),
            buy_volume=data.get("buyVolume", 0.0),
            sell_price=data.get("sellPrice", 0.0),
            sell_volume=data.get("sellVolume", 0.0),
        )


@dataclass
class OrderDepthData:
    """A complete order book snapshot for one orderbook."""

    orderbook_id: str
    levels: list[OrderDepthLevel] = field(default_factory=list)
    market_maker_level_in_ask: int = 0
    market_maker_level_in_bid: int = 0

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderDepthData:
        return cls(
            orderbook_id=data["orderbookId"],
            levels=[OrderDepthLevel.from_dict(lv) for lv in data.get("levels") or []],
            market_maker_level_in_ask=data.get("marketMakerLevelInAsk", 0),
            market_maker_level_in_bid=data.get("marketMakerLevelInBid", 0),
        )
