#!/usr/bin/env python3
"""Create the storefront schema and load the sample catalogue."""

from __future__ import annotations

import argparse
import asyncio
import json
import os

from services.common import create_schema, dispose_engines, get_session_factory
from services.storefront_service.app.main import DEFAULT_DATABASE_URL
from services.storefront_service.app.models import Base
from services.storefront_service.app.seed import seed_sample_items


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Bootstrap the storefront database")
    parser.add_argument(
        "--database-url",
        default=os.getenv("SERVICE_DATABASE_URL", DEFAULT_DATABASE_URL),
        help="Async SQLAlchemy URL (default: %(default)s or SERVICE_DATABASE_URL)",
    )
    parser.add_argument(
        "--skip-schema",
        action="store_true",
        help="Assume tables already exist instead of creating them",
    )
    parser.add_argument(
        "--skip-items",
        action="store_true",
        help="Do not load the sample catalogue",
    )
    return parser.parse_args()


async def main_async() -> int:
    args = parse_args()
    report: dict[str, object] = {"database_url": args.database_url}
    try:
        if not args.skip_schema:
            await create_schema(args.database_url, Base)
            report["tables"] = sorted(Base.metadata.tables)
        if not args.skip_items:
            report["items_added"] = await seed_sample_items(get_session_factory(args.database_url))
    finally:
        await dispose_engines()

    print(json.dumps(report, indent=2, sort_keys=True))
    return 0


def main() -> None:
    try:
        exit_code = asyncio.run(main_async())
    except Exception as exc:
        print(json.dumps({"error": str(exc)}))
        exit_code = 1
    raise SystemExit(exit_code)


if __name__ == "__main__":
    main()
