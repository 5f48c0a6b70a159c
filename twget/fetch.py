"""
Idempotent media fetching.

Each media item is stored once as ``<output_dir>/<media id><ext>``. A file
that already exists is never downloaded again. After a fresh download,
videos get their movie header stamped and every file gets its mtime/atime
set to the post time derived from the media id; that mtime is what later
runs use to plan their search window.

There is no temp-file-then-rename step: a transfer or patch that fails
half way leaves the partial file in place, and it will be treated as
archived by the next run.
"""

import os
import posixpath
from datetime import datetime, timedelta
from pathlib import Path
from typing import Optional
from urllib.parse import parse_qsl, urlencode, urlparse, urlunparse

import requests

from . import container, snowflake
from .errors import TransferError
from .logger import StructuredLogger, get_logger
from .models import MediaDescriptor, MediaKind

CHUNK_SIZE = 64 * 1024


def original_photo_url(url: str) -> str:
    """Ask the image CDN for the original upload instead of a resized variant."""
    p = urlparse(url)
    query = dict(parse_qsl(p.query, keep_blank_values=True))
    query["name"] = "orig"
    return urlunparse(p._replace(query=urlencode(sorted(query.items()))))


def media_extension(media: MediaDescriptor) -> str:
    """
    File extension for a media item, with the leading dot.

    Taken from the URL path when it has one, else from the extension the
    search reported, else from the CDN's ``format`` query parameter.
    """
    p = urlparse(media.url)
    ext = posixpath.splitext(p.path)[1]
    if ext:
        return ext
    if media.extension:
        return f".{media.extension}"
    fmt = dict(parse_qsl(p.query)).get("format")
    return f".{fmt}" if fmt else ""


def target_path(output_dir: Path, media: MediaDescriptor) -> Path:
    ext = media_extension(media)
    return Path(output_dir) / f"{media.id}{ext}"


def set_file_times(path: Path, ts: datetime) -> None:
    """Set both access and modification time of ``path`` to ``ts``."""
    ns = (ts - snowflake.UNIX_EPOCH) // timedelta(microseconds=1) * 1000
    os.utime(path, ns=(ns, ns))


class FetchPipeline:
    """Download, patch and timestamp media for one account directory."""

    def __init__(
        self,
        output_dir: Path,
        session: Optional[requests.Session] = None,
        logger: Optional[StructuredLogger] = None,
        timeout: Optional[float] = None,
    ):
        self.output_dir = Path(output_dir)
        self.session = session if session is not None else requests.Session()
        self.logger = logger if logger is not None else get_logger()
        self.timeout = timeout

    def process(self, media: MediaDescriptor) -> Optional[Path]:
        """
        Archive a single media item.

        Args:
            media: Photo or video descriptor from the search results

        Returns:
            Path of the newly written file, or None if it was already archived

        Raises:
            InvalidIdentifier: If the media id cannot be decoded
            TransferError: If the download fails
            ContainerFormatError: If a video cannot be patched
        """
        ts = snowflake.decode(media.id)
        self.logger.record_media()

        url = media.url
        if media.kind is MediaKind.PHOTO:
            url = original_photo_url(url)

        path = self.download(url, target_path(self.output_dir, media))
        if path is None:
            return None

        if media.kind is MediaKind.VIDEO:
            container.patch(path, ts)
            self.logger.record_patch()

        set_file_times(path, ts)
        return path

    def download(self, url: str, path: Path) -> Optional[Path]:
        """Stream ``url`` into ``path`` unless ``path`` already exists."""
        try:
            os.stat(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            raise TransferError(f"Cannot check {path}: {e}") from e
        else:
            self.logger.info(f"`{path}` already exists")
            self.logger.record_skip()
            return None

        self.logger.info(f"downloading `{path}`")

        written = 0
        try:
            with self.session.get(url, stream=True, timeout=self.timeout) as resp:
                resp.raise_for_status()
                with open(path, "wb") as out:
                    for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                        if chunk:
                            out.write(chunk)
                            written += len(chunk)
        except requests.exceptions.HTTPError as e:
            status = e.response.status_code if e.response is not None else "HTTPError"
            raise TransferError(f"Download failed ({status}): {url}") from e
        except requests.exceptions.RequestException as e:
            raise TransferError(f"Download error for {url}: {e}") from e
        except OSError as e:
            raise TransferError(f"Cannot write {path}: {e}") from e

        self.logger.record_download(written)
        return path
