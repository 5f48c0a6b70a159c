"""
Session persistence.

The X/Twitter session is an ``auth_token`` cookie. It is kept in
``<config dir>/twget/cookies.json`` so the user is only asked once.
"""

import getpass
import json
import os
import sys
from pathlib import Path
from typing import Callable, Dict, Optional

from .errors import AuthenticationError
from .logger import StructuredLogger, get_logger

AUTH_COOKIE = "auth_token"
TOKEN_ENV = "TWGET_AUTH_TOKEN"


def config_dir() -> Path:
    """Per-user configuration root for the current platform."""
    home = Path(os.environ.get("HOME", str(Path.home())))
    if sys.platform == "darwin":
        return home / "Library" / "Application Support"
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg)
    return home / ".config"


def app_dir() -> Path:
    return config_dir() / "twget"


class CookieStore:
    """JSON file holding the session cookies as a list of name/value pairs."""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path is not None else app_dir() / "cookies.json"

    def exists(self) -> bool:
        return self.path.is_file()

    def load(self) -> Dict[str, str]:
        try:
            with self.path.open("r", encoding="utf-8") as f:
                entries = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise AuthenticationError(f"Cannot read cookies from {self.path}: {e}") from e
        if not isinstance(entries, list):
            raise AuthenticationError(f"Malformed cookie file: {self.path}")
        return {c["name"]: c["value"] for c in entries if "name" in c and "value" in c}

    def save(self, cookies: Dict[str, str]) -> None:
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
        entries = [{"name": k, "value": v, "domain": ".x.com"} for k, v in cookies.items()]
        with self.path.open("w", encoding="utf-8") as f:
            json.dump(entries, f, indent=2)


def login(
    store: Optional[CookieStore] = None,
    prompt: Callable[[str], str] = getpass.getpass,
    logger: Optional[StructuredLogger] = None,
) -> Dict[str, str]:
    """
    Return logged-in session cookies, asking for a token if none is stored.

    The token comes from ``TWGET_AUTH_TOKEN`` when set, otherwise from
    ``prompt`` (hidden input). A token obtained this way is saved for the
    next run; failing to save it is only a warning.

    Raises:
        AuthenticationError: If the stored cookies are unreadable, no token is given
            or the prompt is aborted
    """
    store = store if store is not None else CookieStore()
    logger = logger if logger is not None else get_logger()

    cookies: Dict[str, str] = store.load() if store.exists() else {}
    if cookies.get(AUTH_COOKIE):
        return cookies

    token = os.environ.get(TOKEN_ENV)
    if not token:
        try:
            token = prompt("auth_token: ")
        except (EOFError, KeyboardInterrupt) as e:
            raise AuthenticationError("failed to login: token prompt aborted") from e
    token = token.strip()
    if not token:
        raise AuthenticationError("failed to login: no auth_token given")
    cookies[AUTH_COOKIE] = token

    try:
        store.save(cookies)
    except OSError as e:
        logger.warning("failed to save cookie", path=str(store.path), error=str(e))

    return cookies
