"""Order depth stream example.

Prints every order book snapshot for one orderbook until interrupted.
The session cookies are read from the environment; obtain them by
logging in through a browser.
"""

import asyncio
import logging
import os

import avapush


async def report_errors(sub: avapush.Subscription) -> None:
    async for err in sub.errors():
        print(f"Subscription stopped: {err}")


async def main() -> None:
    logging.basicConfig(level=logging.INFO)

    session = avapush.HTTPSession()
    session.set_cookies({
        "csid": os.environ["AVANZA_CSID"],
        "cstoken": os.environ["AVANZA_CSTOKEN"],
        "AZACSRF": os.environ["AVANZA_AZACSRF"],
    })

    async with avapush.Client(transport=session) as client:
        sub = client.subscribe_order_depth(os.environ.get("ORDERBOOK_ID", "5247"))
        errors = asyncio.create_task(report_errors(sub))

        async for event in sub:
            depth = event.payload
            if depth is None:
                continue
            best = depth.levels[0] if depth.levels else None
            if best is not None:
                print(
                    f"[{event.id}] {depth.orderbook_id}: "
                    f"bid {best.buy_price} x {best.buy_volume} / "
                    f"ask {best.sell_price} x {best.sell_volume}"
                )

        await errors

    await session.close()


if __name__ == "__main__":
    asyncio.run(main())
