"""
Search results to media descriptors.

The remote search is an external collaborator: anything with a
``search(query, limit)`` method yielding ``Tweet`` records will do.
``GalleryDlSearch`` is the implementation used by the CLI; it drives
gallery-dl's X/Twitter search extractor with the logged-in cookies.
"""

from typing import Dict, Iterable, Iterator, List, Optional, Protocol
from urllib.parse import quote

from gallery_dl import config as gdl_config
from gallery_dl import exception as gdl_exception
from gallery_dl import extractor as gdl_extractor
from gallery_dl.extractor.message import Message

from .errors import TransferError
from .logger import StructuredLogger, get_logger
from .models import MediaDescriptor, MediaKind, Tweet
from .snowflake import parse_id

SEARCH_URL = "https://x.com/search?q={query}&f=live"
VIDEO_TYPES = {"video", "animated_gif"}


class SearchClient(Protocol):
    def search(self, query: str, limit: int) -> Iterator[Tweet]:
        ...


def iter_media(
    tweets: Iterable[Tweet],
    logger: Optional[StructuredLogger] = None,
) -> Iterator[MediaDescriptor]:
    """
    Flatten search results into the media to archive.

    A record carrying an error ends the sequence by raising it. Retweets
    are dropped; the retweeted media belongs to another account.
    """
    logger = logger if logger is not None else get_logger()
    for tweet in tweets:
        if tweet.error is not None:
            raise tweet.error
        if tweet.is_retweet:
            logger.debug("skipping retweet", tweet_id=tweet.id)
            logger.record_retweet()
            continue
        yield from tweet.photos
        yield from tweet.videos


def _media_id(kwdict: Dict) -> str:
    media_id = kwdict.get("media_id")
    if media_id:
        return str(media_id)
    # Same millisecond as the tweet; only the sequence bits differ per attachment
    return str(parse_id(str(kwdict["tweet_id"])) + int(kwdict.get("num", 1)) - 1)


def _to_tweet(tweet_id: str, files: List[Dict]) -> Tweet:
    tweet = Tweet(id=tweet_id)
    for url, kwdict in files:
        tweet.is_retweet = tweet.is_retweet or bool(kwdict.get("retweet_id"))
        kind = MediaKind.VIDEO if kwdict.get("type") in VIDEO_TYPES else MediaKind.PHOTO
        media = MediaDescriptor.from_record({
            "id": _media_id(kwdict),
            "url": url,
            "kind": kind.value,
            "extension": kwdict.get("extension"),
        })
        if kind is MediaKind.VIDEO:
            tweet.videos.append(media)
        else:
            tweet.photos.append(media)
    return tweet


class GalleryDlSearch:
    """Media search backed by gallery-dl's twitter extractor."""

    def __init__(self, cookies: Dict[str, str], logger: Optional[StructuredLogger] = None):
        self.cookies = cookies
        self.logger = logger if logger is not None else get_logger()

    def _configure(self) -> None:
        gdl_config.set(("extractor", "twitter"), "cookies", dict(self.cookies))
        # Retweets are filtered by iter_media so they can be counted
        gdl_config.set(("extractor", "twitter"), "retweets", True)
        gdl_config.set(("extractor", "twitter"), "videos", True)

    def search(self, query: str, limit: int) -> Iterator[Tweet]:
        """
        Lazily yield up to ``limit`` tweets with media matching ``query``.

        Extractor failures end the sequence with a record carrying a
        TransferError, after any tweet already collected.
        """
        if limit <= 0:
            return
        self._configure()
        url = SEARCH_URL.format(query=quote(query))
        ex = gdl_extractor.find(url)
        if ex is None:
            raise TransferError(f"No extractor available for {url}")

        self.logger.debug("searching", query=query, limit=limit)
        count = 0
        current: Optional[str] = None
        files: List = []
        try:
            for msg in ex:
                if msg[0] != Message.Url:
                    continue
                media_url, kwdict = msg[1], msg[2]
                tweet_id = str(kwdict["tweet_id"])
                if tweet_id != current and files:
                    yield _to_tweet(current, files)
                    count += 1
                    files = []
                    if count >= limit:
                        return
                current = tweet_id
                files.append((media_url, kwdict))
        except gdl_exception.GalleryDLException as e:
            if files and count < limit:
                yield _to_tweet(current, files)
            yield Tweet(id=current or "", error=TransferError(f"Search failed for {query!r}: {e}"))
            return

        if files and count < limit:
            yield _to_tweet(current, files)
