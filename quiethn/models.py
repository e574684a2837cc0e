from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, List, Optional

HN_WEB_BASE = "https://news.ycombinator.com"


@dataclass
class FeedMetadata:
    title: str
    link: str
    description: str
    language: str = "en-us"


@dataclass
class FeedItem:
    title: str
    link: str
    description: str = ""
    published: Optional[datetime] = None
    guid: Optional[str] = None
    categories: Optional[List[str]] = None
    is_permalink: bool = True
    extra: Optional[dict] = None


@dataclass(frozen=True)
class RawItem:
    """
    A single record as returned by the Firebase item endpoint.

    Upstream fills either `text` (Ask HN, jobs, comments) or `url`
    (link submissions), never both.
    """

    id: int
    by: str = ""
    score: int = 0
    time: int = 0
    title: str = ""
    type: str = ""
    descendants: int = 0
    kids: tuple[int, ...] = ()
    text: str = ""
    url: str = ""
    deleted: bool = False
    dead: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RawItem":
        return cls(
            id=int(data["id"]),
            by=_text(data, "by"),
            score=int(data.get("score") or 0),
            time=int(data.get("time") or 0),
            title=_text(data, "title"),
            type=_text(data, "type"),
            descendants=int(data.get("descendants") or 0),
            kids=tuple(int(kid) for kid in data.get("kids") or ()),
            text=_text(data, "text"),
            url=_text(data, "url"),
            deleted=bool(data.get("deleted", False)),
            dead=bool(data.get("dead", False)),
        )

    @property
    def comments_url(self) -> str:
        return f"{HN_WEB_BASE}/item?id={self.id}"

    @property
    def published(self) -> Optional[datetime]:
        if not self.time:
            return None
        return datetime.fromtimestamp(self.time, tz=timezone.utc)


@dataclass(frozen=True)
class DisplayStory(RawItem):
    """A qualifying story together with the host name shown next to its title."""

    host: str = ""


@dataclass(frozen=True)
class CacheEntry:
    """
    Snapshot of the most recently resolved story list.

    Entries are never mutated; a refresh builds a new one and swaps it in.
    """

    stories: tuple[DisplayStory, ...]
    num_stories: int
    duration: float
    created_at: float
    expires_at: float = field(default=0.0)

    def is_fresh(self, now: float) -> bool:
        return now < self.expires_at


def _text(data: dict[str, Any], key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise TypeError(f"{key!r} should be a string, got {type(value).__name__}")
    return value
