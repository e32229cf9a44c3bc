import argparse
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from catalog_sync.core.db import get_db_context, init_db
from catalog_sync.exceptions.base import AppError
from catalog_sync.ingestion import config
from catalog_sync.ingestion.logger import set_console_level
from catalog_sync.logging_ import setup_logger
from catalog_sync.services import podcasts as podcasts_service
from catalog_sync.services import recommendations as recommendations_service


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="catalog_sync.ingestion.runner")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every batch and retry")
    commands = parser.add_subparsers(dest="command", required=True)

    search = commands.add_parser("search", help="Search podcasts and fetch their episodes")
    search.add_argument("query")
    search.add_argument("--page", type=int, default=1)
    search.add_argument("--limit", type=int, default=config.DEFAULT_PAGE_SIZE)

    best = commands.add_parser("best", help="Best podcasts, episodes oldest first")
    best.add_argument("--page", type=int, default=1)
    best.add_argument("--genre", default=None)
    best.add_argument("--region", default=None)

    recommend = commands.add_parser("recommend", help="Search tracks and store new ones")
    recommend.add_argument("--owner", required=True)
    recommend.add_argument("queries", nargs="+")
    return parser


def _execute(args: argparse.Namespace) -> Any:
    if args.command == "search":
        podcasts = podcasts_service.search_podcasts(
            query=args.query, page=args.page, limit=args.limit
        )
        return [p.model_dump() for p in podcasts]

    if args.command == "best":
        kwargs: dict[str, Any] = {"page": args.page}
        if args.genre:
            kwargs["genre_id"] = args.genre
        if args.region:
            kwargs["region"] = args.region
        podcasts = podcasts_service.get_best_podcasts(**kwargs)
        return [p.model_dump() for p in podcasts]

    init_db()
    with get_db_context() as session:
        result = recommendations_service.recommend(
            session=session,
            owner_scope=args.owner,
            queries=args.queries,
        )
    return {
        "results": [r.model_dump() for r in result.results],
        "accepted": [r.model_dump() for r in result.accepted],
        "total": result.total,
    }


def run(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    if args.verbose:
        set_console_level(logging.DEBUG)
    log = setup_logger("catalog_ingest")
    log.info(f"Starting catalog {args.command} run...")
    try:
        output = _execute(args)
    except AppError as e:
        log.error(f"Catalog {args.command} run failed ({e.status_code}): {e.detail}")
        return 1
    print(json.dumps(output, indent=2, default=str))
    log.info(f"Catalog {args.command} run finished successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(run())
