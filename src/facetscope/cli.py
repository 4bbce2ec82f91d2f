"""CLI entrypoint for facetscope."""

import argparse
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from facetscope.api.explore_api import explore
from facetscope.config.loader import DEFAULT_CONFIG_PATH, get_explore_settings, get_sqlite_path, load_config
from facetscope.database.facet_index_repo import rebuild_facet_index
from facetscope.database.sqlite_client import get_engine, session_context
from facetscope.explore.enhancers import Viewer
from facetscope.explore.entities import ENTITY_CONFIGS, get_entity_config
from facetscope.explore.errors import ExploreError
from facetscope.utils.logging import get_logger
from facetscope.utils.time import parse_utc

logger = get_logger(__name__)


def _load_config(args: argparse.Namespace) -> Dict[str, Any]:
    """Explicit --config must exist; the default path is optional."""
    if args.config is not None:
        return load_config(args.config)
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return {}


def cmd_explore(args: argparse.Namespace) -> int:
    """Run one explore request and print the JSON response."""
    config = _load_config(args)
    settings = get_explore_settings(config)
    now = parse_utc(args.now) if args.now else None
    viewer = Viewer(profile_id=args.profile_id)

    with session_context(get_sqlite_path(config)) as session:
        try:
            response = explore(session, args.entity, args.query, viewer, now=now, settings=settings)
        except ExploreError as e:
            if e.status_code >= 500:
                raise
            logger.warning("Rejected explore request for %s: %s", args.entity, e)
            print(json.dumps({"error": str(e), "status_code": e.status_code}), file=sys.stderr)
            return 2
    print(response.model_dump_json(indent=2))
    return 0


def cmd_rebuild_index(args: argparse.Namespace) -> int:
    """Rebuild facet_index rows for one or all entity types."""
    config = _load_config(args)
    entity_types: List[str] = [args.entity] if args.entity else list(ENTITY_CONFIGS)
    results: Dict[str, int] = {}
    with session_context(get_sqlite_path(config)) as session:
        for entity_type in entity_types:
            results[entity_type] = rebuild_facet_index(session, get_entity_config(entity_type))
        session.commit()
    for entity_type, written in results.items():
        print(f"{entity_type}: {written} index entries")
    return 0


def cmd_init_db(args: argparse.Namespace) -> int:
    """Create all tables in the configured SQLite database."""
    config = _load_config(args)
    sqlite_path = get_sqlite_path(config)
    get_engine(sqlite_path)
    print(f"Initialized database at {sqlite_path}")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entrypoint."""
    parser = argparse.ArgumentParser(
        prog="facetscope",
        description="Visibility-aware faceted search for explore listings",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help=f"Path to the YAML config (default: {DEFAULT_CONFIG_PATH} if present)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # explore command
    explore_parser = subparsers.add_parser("explore", help="Run an explore query and print JSON")
    explore_parser.add_argument("entity", choices=sorted(ENTITY_CONFIGS), help="Entity type to list")
    explore_parser.add_argument(
        "--query",
        type=str,
        default="",
        help="Query string, e.g. 'filter[type]=online&sortBy=name-asc&page=2'",
    )
    explore_parser.add_argument(
        "--profile-id",
        type=str,
        default=None,
        help="Treat the request as logged in with this profile id",
    )
    explore_parser.add_argument(
        "--now",
        type=str,
        default=None,
        help="ISO 8601 anchor time for periodOfTime windows (default: current UTC time)",
    )
    explore_parser.set_defaults(func=cmd_explore)

    # rebuild-index command
    rebuild_parser = subparsers.add_parser("rebuild-index", help="Rebuild the facet index from term relations")
    rebuild_parser.add_argument(
        "--entity",
        choices=sorted(ENTITY_CONFIGS),
        default=None,
        help="Only rebuild this entity type (default: all)",
    )
    rebuild_parser.set_defaults(func=cmd_rebuild_index)

    # init-db command
    init_parser = subparsers.add_parser("init-db", help="Create database tables")
    init_parser.set_defaults(func=cmd_init_db)

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except Exception as e:
        logger.error(f"Error running command '{args.command}': {e}", exc_info=True)
        raise


if __name__ == "__main__":
    sys.exit(main())
