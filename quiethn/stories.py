from __future__ import annotations

from dataclasses import fields
from urllib.parse import urlparse

from quiethn.models import DisplayStory, RawItem


def is_qualifying_story(item: RawItem) -> bool:
    """Only link submissions are shown; Ask HN, jobs, polls and comments are not."""
    return item.type == "story" and bool(item.url)


def link_host(url: str) -> str:
    """
    Extract the host shown next to a story title.

    "http://www.example.com/x" -> "example.com". Anything that does not
    parse gives an empty string instead of an error.
    """
    if not url:
        return ""
    try:
        hostname = urlparse(url).hostname
    except ValueError:
        return ""
    if not hostname:
        return ""
    return hostname.removeprefix("www.")


def to_display_story(item: RawItem) -> DisplayStory:
    values = {f.name: getattr(item, f.name) for f in fields(RawItem)}
    return DisplayStory(**values, host=link_host(item.url))
