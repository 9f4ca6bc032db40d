"""Order lifecycle payload types."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any


class OrderAction(enum.StrEnum):
    """What happened to the order."""

    NEW = "NEW"
    DELETED = "DELETED"


class OrderStateName(enum.StrEnum):
    """Known order states."""

    ACTIVE_PENDING = "ACTIVE_PENDING"
    DELETED = "DELETED"


@dataclass
class OrderEventOrderbook:
    """Instrument details attached to an order event."""

    id: str
    name: str = ""
    ticker_symbol: str = ""
    marketplace_name: str = ""
    country_code: str = ""
    instrument_type: str = ""
    tradable: bool = False
    volume_factor: int = 1
    currency_code: str = ""
    flag_code: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderEventOrderbook:
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            ticker_symbol=data.get("tickerSymbol", ""),
            marketplace_name=data.get("marketplaceName", ""),
            country_code=data.get("countryCode", ""),
            instrument_type=data.get("instrumentType", ""),
            tradable=data.get("tradable", False),
            volume_factor=data.get("volumeFactor", 1),
            currency_code=data.get("currencyCode", ""),
            flag_code=data.get("flagCode", ""),
        )


@dataclass
class OrderEventState:
    value: str = ""
    description: str = ""
    name: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderEventState:
        return cls(
            value=data.get("value", ""),
            description=data.get("description", ""),
            name=data.get("name", ""),
        )


@dataclass
class OrderEventData:
    """An order as carried by an ORDER event.

    ``action`` and ``state.name`` are kept as plain strings; compare them
    against OrderAction / OrderStateName. Unknown values pass through.
    """

    id: str
    account_id: str
    orderbook: OrderEventOrderbook
    current_volume: float = 0.0
    original_volume: float = 0.0
    open_volume: float | None = None
    price: float = 0.0
    valid_date: str | None = None
    type: str = ""
    state: OrderEventState = field(default_factory=OrderEventState)
    action: str = ""
    modifiable: bool = False
    deletable: bool = False
    sum: float = 0.0
    visible_date: str | None = None
    order_date_time: int = 0
    event_timestamp: int = 0
    unique_id: str = ""
    additional_parameters: dict[str, Any] = field(default_factory=dict)
    detailed_cancel_status: str | None = None
    condition: str = ""

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> OrderEventData:
        return cls(
            id=data["id"],
            account_id=data["accountId"],
            orderbook=OrderEventOrderbook.from_dict(data["orderbook"]),
            current_volume=data.get("currentVolume", 0.0),
            original_volume=data.get("originalVolume", 0.0),
            open_volume=data.get("openVolume"),
            price=data.get("price", 0.0),
            valid_date=data.get("validDate"),
            type=data.get("type", ""),
            state=OrderEventState.from_dict(data.get("state") or {}),
            action=data.get("action", ""),
            modifiable=data.get("modifiable", False),
            deletable=data.get("deletable", False),
            sum=data.get("sum", 0.0),
            visible_date=data.get("visibleDate"),
            order_date_time=data.get("orderDateTime", 0),
            event_timestamp=data.get("eventTimeStamp", 0),
            unique_id=data.get("uniqueId", ""),
            additional_parameters=data.get("additionalParameters") or {},
            detailed_cancel_status=data.get("detailedCancelStatus"),
            condition=data.get("condition", ""),
        )
