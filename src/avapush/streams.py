"""Stream kinds.

A StreamKind tells the subscription engine where a stream lives, which
event tag carries a payload, and how to decode that payload. The engine
itself is the same for every kind.
"""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar
from urllib.parse import quote

from avapush.errors import PayloadDecodeError
from avapush.events import EventType
from avapush.market import OrderDepthData
from avapush.orders import OrderEventData

T = TypeVar("T")


@dataclass(frozen=True)
class StreamKind(Generic[T]):
    """Description of one kind of push stream.

    Attributes:
        name: Human readable name, used in logs.
        endpoint: Path prefix; the escaped resource key is appended to it.
        tag: The event tag whose data is decoded into a payload.
        decoder: Maps the JSON-decoded data to the payload type.
        referer: Optional function building a Referer header from the key.
    """

    name: str
    endpoint: str
    tag: str
    decoder: Callable[[Any], T]
    referer: Callable[[str], str] | None = None

    def path(self, resource_key: str) -> str:
        return f"{self.endpoint.rstrip('/')}/{quote(resource_key, safe='')}"

    def decode(self, data: str, event_id: str = "") -> T:
        """Decode the data field of a recognized event.

        Raises:
            PayloadDecodeError: The data is not valid JSON or does not
                have the shape the decoder expects.
        """
        try:
            return self.decoder(json.loads(data))
        except (ValueError, KeyError, TypeError, AttributeError) as e:
            raise PayloadDecodeError(self.tag, data, event_id, str(e)) from e


def _order_page_referer(orderbook_id: str) -> str:
    return f"https://www.avanza.se/handla/order.html/kop/{quote(orderbook_id, safe='')}"


ORDER_DEPTH: StreamKind[OrderDepthData] = StreamKind(
    name="order-depth",
    endpoint="/_push/order-depth-web-push",
    tag=EventType.ORDER_DEPTH,
    decoder=OrderDepthData.from_dict,
    referer=_order_page_referer,
)

ORDERS: StreamKind[OrderEventData] = StreamKind(
    name="orders",
    endpoint="/_push/orders-web-push",
    tag=EventType.ORDER,
    decoder=OrderEventData.from_dict,
)
