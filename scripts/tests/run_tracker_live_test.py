#!/usr/bin/env python
"""
Run a few refresh cycles against a running flights proxy without a map.

Start the proxy first:
    uvicorn flightwatch.main:app --port 3000

Then (from repo root):
    python scripts/tests/run_tracker_live_test.py --cycles 3 --interval 10
"""

from __future__ import annotations

import argparse
import asyncio

from flightwatch.ingestors import SnapshotFetcher
from flightwatch.models.air_traffic import BoundingBox
from flightwatch.services import (
    InMemoryPresenter,
    ReconciliationEngine,
    RefreshScheduler,
    RefreshTrigger,
)

# Roughly the continental US, the default map view
DEFAULT_BBOX = "24.0,50.0,-125.0,-66.0"


async def main(args: argparse.Namespace) -> None:
    bbox = BoundingBox.parse(args.bbox)
    presenter = InMemoryPresenter()
    scheduler = RefreshScheduler(
        fetcher=SnapshotFetcher(base_url=args.proxy),
        engine=ReconciliationEngine(),
        presenter=presenter,
        viewport=lambda: bbox,
        auto_refresh=False,
        status_listener=lambda message: print(f"[status] {message}"),
    )

    print(f"=== Live tracker test for bbox {bbox.to_query()} via {args.proxy} ===\n")
    for cycle in range(1, args.cycles + 1):
        outcome = await scheduler.refresh(RefreshTrigger.MANUAL)
        if outcome is None or outcome.result is None:
            print(f"Cycle {cycle}: no snapshot ({outcome.failure if outcome else 'dropped'})")
        else:
            result = outcome.result
            print(
                f"Cycle {cycle}: +{len(result.creates)} ~{len(result.updates)} "
                f"-{len(result.removes)} ={result.unchanged}; tracking {len(scheduler.engine)}"
            )
        if cycle < args.cycles:
            await asyncio.sleep(args.interval)

    print("\nA few markers:")
    for marker in list(presenter.markers.values())[:5]:
        lat, lon = marker.position
        print(f"  {marker.identifier}: lat={lat:.4f} lon={lon:.4f} rot={marker.rotation}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--proxy", default="http://localhost:3000")
    parser.add_argument("--bbox", default=DEFAULT_BBOX)
    parser.add_argument("--cycles", type=int, default=3)
    parser.add_argument("--interval", type=float, default=10.0)
    asyncio.run(main(parser.parse_args()))
