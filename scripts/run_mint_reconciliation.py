#!/usr/bin/env python3
"""Mint reconciliation: resolve assets whose minting lease expired.

A request that dies between claiming an asset and recording the outcome
leaves the asset in ``minting``. This sweep re-queries the ledger for
every asset whose lease has lapsed:

1. confirmed on-chain      -> minted (certificate recorded)
2. reverted / unknown      -> failed (owner may retry)
3. never broadcast         -> failed
4. still pending           -> lease extended

It then re-reads receipts of minted assets whose token id was generated
locally and replaces it when the ClipCertified event can be decoded.

Usage:
    python scripts/run_mint_reconciliation.py
    python scripts/run_mint_reconciliation.py --limit 500 -v
    python scripts/run_mint_reconciliation.py --skip-reconfirm --json
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from dataclasses import asdict

from src.bootstrap.database import close_database_engine
from src.bootstrap.logging import configure_logging
from src.bootstrap.minting import build_minting_components, prepare_storage
from src.infrastructure.observability import correlation_scope


def print_section(title: str) -> None:
    """Print a section header."""
    print(f"\n{'=' * 60}")
    print(title)
    print(f"{'=' * 60}")


async def run(limit: int, reconfirm: bool, as_json: bool) -> int:
    components = build_minting_components()
    await prepare_storage(components)
    reconciler = components.reconciler

    try:
        with correlation_scope() as run_id:
            sweep = await reconciler.sweep_stuck_mints(limit=limit)
            reconfirmation = (
                await reconciler.reconfirm_identifiers(limit=limit)
                if reconfirm
                else None
            )
    finally:
        await close_database_engine()

    if as_json:
        print(
            json.dumps(
                {
                    "run_id": run_id,
                    "sweep": asdict(sweep),
                    "reconfirmation": asdict(reconfirmation) if reconfirmation else None,
                },
                indent=2,
            )
        )
        return 0

    print_section("Stuck mint sweep")
    print(f"  examined: {sweep.examined}")
    print(f"  minted:   {sweep.minted}")
    print(f"  failed:   {sweep.failed}")
    print(f"  extended: {sweep.extended}")
    print(f"  skipped:  {sweep.skipped}")

    if reconfirmation is not None:
        print_section("Fallback identifier reconfirmation")
        print(f"  examined:    {reconfirmation.examined}")
        print(f"  reconfirmed: {reconfirmation.reconfirmed}")
        print(f"  unresolved:  {reconfirmation.unresolved}")

    return 0


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Resolve expired minting leases against the ledger"
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=100,
        help="Maximum assets to examine per pass (default: 100)",
    )
    parser.add_argument(
        "--skip-reconfirm",
        action="store_true",
        help="Do not re-decode fallback token ids",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the reports as JSON",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Human-readable log output instead of JSON",
    )
    args = parser.parse_args()

    if args.limit < 1:
        parser.error("--limit must be positive")

    configure_logging("development" if args.verbose else "production")
    return asyncio.run(
        run(limit=args.limit, reconfirm=not args.skip_reconfirm, as_json=args.json)
    )


if __name__ == "__main__":
    sys.exit(main())
