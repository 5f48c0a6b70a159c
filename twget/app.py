import argparse
import sys
from typing import List, Optional

import requests

from . import __version__
from .config import DEFAULT_LIMIT, RunConfig
from .env import load_env
from .errors import ConfigurationError, DirectoryUnavailable, TwgetError
from .fetch import FetchPipeline
from .logger import StructuredLogger, get_logger
from .search import GalleryDlSearch, SearchClient, iter_media
from .session import login
from .window import build_query, plan_for_directory


def process_user(
    config: RunConfig,
    user: str,
    search: SearchClient,
    session: requests.Session,
    logger: StructuredLogger,
) -> None:
    """
    Archive one account's media into ``<output>/<user>``.

    The directory is scanned once, before any download, to plan the search
    window. Any error aborts the account.
    """
    directory = config.account_dir(user)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise DirectoryUnavailable(f"Cannot create {directory}: {e}") from e

    boundary = plan_for_directory(config.mode, directory, config.since, config.until)
    query = build_query(user, boundary)
    logger.info(f"searching @{user}", query=query, mode=config.mode.value)

    pipeline = FetchPipeline(directory, session=session, logger=logger)
    for media in iter_media(search.search(query, config.limit), logger):
        pipeline.process(media)

    logger.record_account()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="twget",
        description="Archive photos and videos posted by X/Twitter accounts",
    )
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument("--output", default="", help="Path to output directory (one sub-directory per account)")
    parser.add_argument("--decremental", action="store_true", help="Search tweets older than the oldest archived file")
    parser.add_argument("--incremental", action="store_true", help="Search tweets since the newest archived file's day")
    parser.add_argument("--since", default="", help="Filter tweets since this date (YYYY-MM-DD)")
    parser.add_argument("--until", default="", help="Filter tweets until this date (YYYY-MM-DD)")
    parser.add_argument("--limit", type=int, default=DEFAULT_LIMIT, help="Limit number of tweets to search")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ERROR (or set TWGET_LOG_LEVEL)")
    parser.add_argument("--log-dir", help="Directory for log files (or set TWGET_LOG_DIR)")
    parser.add_argument("--no-log-file", action="store_true", help="Only log to the console")
    parser.add_argument("users", nargs="*", help="Account names to archive")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    # Load .env if present (TWGET_AUTH_TOKEN, TWGET_LOG_DIR, etc.)
    load_env()
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.version:
        print(__version__)
        return 0

    try:
        config = RunConfig.from_args(args)
    except ConfigurationError as e:
        parser.error(str(e))

    try:
        logger = get_logger(level=config.log_level, log_dir=config.log_dir, enable_file=config.log_file)
    except OSError as e:
        parser.error(f"cannot open log directory {config.log_dir}: {e}")
    if not config.users:
        logger.warning("No accounts given; nothing to do")
        return 0

    try:
        cookies = login(logger=logger)
        session = requests.Session()
        search = GalleryDlSearch(cookies, logger=logger)
        for user in config.users:
            process_user(config, user, search, session, logger)
    except TwgetError as e:
        logger.record_error(type(e).__name__)
        logger.critical(str(e), error_type=type(e).__name__)
        return 1
    finally:
        logger.log_metrics_summary()

    return 0


if __name__ == "__main__":
    sys.exit(main())
