import enum
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from .errors import InvalidIdentifier
from .snowflake import parse_id


class MediaKind(enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaDescriptor:
    """One photo or video attached to a tweet.

    ``extension`` is the file type reported by the search backend, without
    the dot; it is used when the URL path carries none (``?format=jpg``).
    """

    id: str
    url: str
    kind: MediaKind
    extension: str = ""

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "MediaDescriptor":
        """
        Build a descriptor from a raw search record, validating it first.

        Raises:
            InvalidIdentifier: If the id is missing or not an unsigned 64-bit decimal
            ValueError: For any other malformed field
        """
        if "id" not in record:
            raise InvalidIdentifier("Missing required field: id")
        parse_id(record["id"])

        errors = validate_record(record)
        if errors:
            raise ValueError("; ".join(errors))
        return cls(
            id=record["id"],
            url=record["url"],
            kind=MediaKind(record["kind"]),
            extension=record.get("extension") or "",
        )


@dataclass
class Tweet:
    """A search result: the media of one tweet, or the error that ended the search."""

    id: str
    is_retweet: bool = False
    photos: List[MediaDescriptor] = field(default_factory=list)
    videos: List[MediaDescriptor] = field(default_factory=list)
    error: Optional[Exception] = None


def _valid_url(v: str) -> bool:
    try:
        p = urlparse(v)
        return bool(p.scheme and p.netloc)
    except ValueError:
        return False


def validate_record(data: Dict[str, Any]) -> List[str]:
    """
    Returns a list of validation error messages. Empty list means valid.
    """
    errors: List[str] = []

    for f in ("id", "url", "kind"):
        if f not in data:
            errors.append(f"Missing required field: {f}")

    if "id" in data:
        try:
            parse_id(data["id"])
        except InvalidIdentifier as e:
            errors.append(f"Field 'id' is invalid: {e}")

    if "url" in data:
        if not isinstance(data["url"], str) or not _valid_url(data["url"]):
            errors.append("Field 'url' must be a valid absolute URL (scheme + host)")

    if "kind" in data and data["kind"] not in {k.value for k in MediaKind}:
        errors.append(f"Field 'kind' must be one of: {', '.join(k.value for k in MediaKind)}")

    ext = data.get("extension")
    if ext is not None and (not isinstance(ext, str) or "/" in ext or "." in ext):
        errors.append("Field 'extension' must be a bare file type such as 'jpg'")

    return errors
