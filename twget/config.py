"""
Run configuration.

Options are resolved once at startup into an immutable ``RunConfig`` that
is passed to the planner and the fetch pipeline.
"""

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from .session import app_dir
from .window import Mode, resolve_mode

DEFAULT_LIMIT = 2 ** 31 - 1


@dataclass(frozen=True)
class RunConfig:
    output: Path
    mode: Mode = Mode.EXPLICIT
    since: str = ""
    until: str = ""
    limit: int = DEFAULT_LIMIT
    users: Tuple[str, ...] = ()
    log_level: str = "INFO"
    log_dir: Optional[Path] = None
    log_file: bool = True

    def account_dir(self, user: str) -> Path:
        """Directory holding one account's media: ``<output>/<user>``."""
        return self.output / user

    @classmethod
    def from_args(cls, args: argparse.Namespace) -> "RunConfig":
        """
        Build the run configuration from parsed CLI arguments.

        Raises:
            ConfigurationError: If both resume modes are requested
        """
        mode = resolve_mode(args.decremental, args.incremental)
        log_dir = args.log_dir or os.getenv("TWGET_LOG_DIR")
        return cls(
            output=Path(args.output),
            mode=mode,
            since=args.since or "",
            until=args.until or "",
            limit=args.limit,
            users=tuple(args.users),
            log_level=(args.log_level or os.getenv("TWGET_LOG_LEVEL") or "INFO").upper(),
            log_dir=Path(log_dir) if log_dir else app_dir() / "logs",
            log_file=not args.no_log_file,
        )
