"""Order lifecycle stream example.

Follows the logged in user's orders and stops the subscription after a
fixed time, showing an explicit close instead of a context manager.
"""

import asyncio
import os

import avapush


async def main() -> None:
    session = avapush.HTTPSession()
    session.set_cookies({
        "csid": os.environ["AVANZA_CSID"],
        "cstoken": os.environ["AVANZA_CSTOKEN"],
        "AZACSRF": os.environ["AVANZA_AZACSRF"],
    })
    client = avapush.Client(
        transport=session,
        config=avapush.SubscriptionConfig(retry_interval=1.0, connect_timeout=10.0),
    )

    sub = await client.subscribe_orders()

    async def consume() -> None:
        async for event in sub.events():
            order = event.payload
            if order is None:
                continue
            print(f"{order.action} {order.type} {order.orderbook.name}: {order.state.name}")

    consumer = asyncio.create_task(consume())
    await asyncio.sleep(float(os.environ.get("RUN_SECONDS", "60")))

    await sub.close()
    await consumer
    print(f"Stopped after last event {sub.last_event_id!r}")

    await client.close()
    await session.close()


if __name__ == "__main__":
    asyncio.run(main())
