"""
Paper replication example: copy a scripted stream of source events to a paper destination.

Demonstrates:
- PaperExchangeClient as both source (scripted events) and destination (order log).
- Eligible events (NEW, PARTIALLY_FILLED) copied; fills/cancels ignored.
- A bad side token and a destination rejection are logged; the stream continues.
- Replication report as a DataFrame.
"""

from __future__ import annotations

import asyncio
import logging

from order_copier import OrderEvent
from order_copier.app import build_pipeline
from order_copier.exchange import PaperExchangeClient
from order_copier.replication import records_to_frame, summarize


def _events() -> list[OrderEvent]:
    return [
        OrderEvent(symbol="BTCUSDT", side="BUY", quantity="1.5", price="30000", type="LIMIT", status="NEW", order_id="1"),
        OrderEvent(symbol="BTCUSDT", side="BUY", quantity="1.5", price="30000", type="LIMIT", status="FILLED", order_id="1"),
        OrderEvent(symbol="ETHUSDT", side="HOLD", quantity="2", price="2000", type="LIMIT", status="NEW", order_id="2"),
        OrderEvent(symbol="SOLUSDT", side="SELL", quantity="500", price=None, type="MARKET", status="NEW", order_id="3"),
        OrderEvent(symbol="ETHUSDT", side="SELL", quantity="0.5", price="2100", type="LIMIT", status="PARTIALLY_FILLED", order_id="4"),
    ]


def reject_large_orders(request) -> str | None:
    """Destination rejects anything over 100 units (e.g. insufficient balance)."""
    return "insufficient balance" if request.quantity > 100 else None


async def main() -> None:
    source = PaperExchangeClient(_events(), close_when_exhausted=False)
    destination = PaperExchangeClient(reject_when=reject_large_orders)
    manager = build_pipeline(source, destination)

    cancel = asyncio.Event()
    run = asyncio.create_task(manager.run(cancel))
    # Let the scripted events drain, then request shutdown as a signal handler would.
    await asyncio.sleep(0.1)
    cancel.set()
    reason = await run
    print(f"Stream ended: {reason.value}")

    print("\n--- Destination order log ---")
    for request, ack in destination.get_order_log():
        outcome = ack.order_id if ack else "REJECTED"
        print(f"  {request.side.value} {request.quantity} {request.symbol} @ {request.price} -> {outcome}")

    records = manager.orchestrator.get_records()
    print("\n--- Replication records ---")
    print(records_to_frame(records).to_string())
    print(f"\nSummary: {summarize(records)}")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    asyncio.run(main())
