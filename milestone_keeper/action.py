"""
One-shot command line entry point for cron jobs and CI workflows.

    python -m milestone_keeper.action --debug-only

Exit codes: 0 on success (including an exhausted operation budget),
1 when a GitHub call fails, 2 on a configuration error.
"""

import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from typing import List, Optional

from milestone_keeper.github.client import GitHubAPIError
from milestone_keeper.processing.runner import run_milestones
from milestone_keeper.utils.config import (
    ConfigurationError,
    get_github_settings,
    load_config,
    require_token,
    resolve_repository,
)
from milestone_keeper.utils.kafka import create_event_logger
from milestone_keeper.utils.logger import get_logger, setup_logging

logger = get_logger("action")


def _parse_now(value: str) -> datetime:
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="milestone-keeper",
        description="Close finished milestones and create upcoming recurring milestones.",
    )
    parser.add_argument("--owner", help="Repository owner (default: from GITHUB_REPOSITORY).")
    parser.add_argument("--repo", help="Repository name (default: from GITHUB_REPOSITORY).")
    parser.add_argument(
        "--debug-only",
        "--debug_only",
        dest="debug_only",
        action="store_true",
        default=None,
        help="Report decisions without changing anything on GitHub.",
    )
    parser.add_argument("--now", type=_parse_now, help="Reference instant, ISO-8601 (default: current time).")
    parser.add_argument("--config", default="config/api_config.yaml", help="Path to the YAML config.")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = load_config(args.config)
    setup_logging(config=config.get('logging'))

    try:
        settings = get_github_settings(config)
        require_token(settings)
        owner, repo = resolve_repository(args.owner, args.repo, settings)
    except ConfigurationError as e:
        logger.error(str(e))
        return 2

    debug_only = settings.debug_only if args.debug_only is None else args.debug_only
    event_logger = create_event_logger()

    try:
        result = asyncio.run(
            run_milestones(owner, repo, settings, debug_only=debug_only, now=args.now, event_logger=event_logger)
        )
    except GitHubAPIError as e:
        logger.error(f"GitHub request failed: {e.message}")
        return 1
    finally:
        event_logger.close()

    print(json.dumps(result.model_dump(mode="json"), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
