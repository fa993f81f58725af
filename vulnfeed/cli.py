"""
Command line entry point.

Usage:
    vulnfeed update [--config updaters.json] [--workers N] [--skip-enrichers]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from vulnfeed.core.config import settings
from vulnfeed.core.http_utils import create_client
from vulnfeed.core.worker import UpdateManager, UpdateResult
from vulnfeed.repositories.memory import MemoryStore
from vulnfeed.services.enrichment import EPSSEnricher, KEVEnricher
from vulnfeed.services.updaters import OracleFactory, RHELFactory, UbuntuFactory

logger = logging.getLogger("vulnfeed")


def load_config(path: Optional[str]) -> Dict[str, Dict[str, Any]]:
    """Per-name configuration: a JSON object keyed by factory, updater or enricher name."""
    if not path:
        return {}
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise SystemExit(f"{path}: expected a JSON object keyed by updater name")
    return data


async def run_update(
    configs: Dict[str, Dict[str, Any]],
    num_workers: Optional[int] = None,
    skip_enrichers: bool = False,
) -> List[UpdateResult]:
    store = MemoryStore()
    async with create_client() as client:
        manager = UpdateManager(
            store,
            client,
            factories=[OracleFactory(), RHELFactory(), UbuntuFactory()],
            enrichers=[] if skip_enrichers else [EPSSEnricher(), KEVEnricher()],
            configs=configs,
            num_workers=num_workers,
        )
        return await manager.run()


def summarize(results: List[UpdateResult]) -> int:
    """Log one line per job and return the number of failures."""
    failed = 0
    for result in sorted(results, key=lambda r: r.name):
        if result.status == "failed":
            failed += 1
            logger.error(f"{result.name}: failed: {result.error}")
        elif result.status == "updated":
            logger.info(f"{result.name}: stored {result.count} {result.kind} records")
        else:
            logger.info(f"{result.name}: {result.status}")
    logger.info(f"Update complete: {len(results)} jobs, {failed} failed")
    return failed


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="vulnfeed", description="Vulnerability feed ingestion")
    subparsers = parser.add_subparsers(dest="command", required=True)

    update = subparsers.add_parser("update", help="Run every updater and enricher once")
    update.add_argument("--config", help="JSON file of per-updater configuration")
    update.add_argument("--workers", type=int, help="Number of concurrent update workers")
    update.add_argument("--skip-enrichers", action="store_true", help="Only run vulnerability updaters")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "update":
        results = asyncio.run(
            run_update(load_config(args.config), args.workers, args.skip_enrichers)
        )
        return 1 if summarize(results) else 0
    return 2


if __name__ == "__main__":
    sys.exit(main())
