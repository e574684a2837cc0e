from __future__ import annotations

import html
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable, Optional

from quiethn.models import DisplayStory, FeedItem, FeedMetadata
from quiethn.utils import ensure_utc, format_rfc2822, humanize_age

DEFAULT_METADATA = FeedMetadata(
    title="Hacker News Top Stories",
    link="https://news.ycombinator.com/",
    description="Top link submissions from Hacker News, without the noise",
)


def story_to_feed_item(story: DisplayStory, rank: int, now: Optional[datetime] = None) -> FeedItem:
    """Map one resolved story onto an RSS item pointing at the linked article."""
    now = now or datetime.now(timezone.utc)
    byline = f"{story.score} points by {html.escape(story.by or 'unknown')}"
    if story.published is not None:
        byline += f" {humanize_age(story.published, now)}"

    description = (
        f'<p><strong>Source:</strong> <a href="{html.escape(story.url)}">'
        f"{html.escape(story.host or story.url)}</a></p>"
        f"<p>{byline}</p>"
        f'<p><a href="{story.comments_url}">{story.descendants} comments</a></p>'
    )
    return FeedItem(
        title=story.title,
        link=story.url,
        description=description,
        published=story.published,
        guid=story.comments_url,
        categories=[story.host] if story.host else None,
        extra={
            "hn_points": story.score,
            "hn_author": story.by,
            "hn_rank": rank,
            "comments": story.comments_url,
        },
    )


def generate_rss2(
    meta: FeedMetadata,
    items: list[FeedItem],
    ttl_minutes: Optional[int] = None,
) -> str:
    """Build an RSS 2.0 feed as a UTF-8 XML string."""
    rss_el = ET.Element("rss", version="2.0")
    channel_el = ET.SubElement(rss_el, "channel")

    # core fields
    ET.SubElement(channel_el, "title").text = meta.title
    ET.SubElement(channel_el, "link").text = meta.link
    ET.SubElement(channel_el, "description").text = meta.description
    ET.SubElement(channel_el, "language").text = meta.language

    # Recommended but optional fields
    now = ensure_utc(datetime.now(timezone.utc))
    ET.SubElement(channel_el, "lastBuildDate").text = format_rfc2822(now)
    if ttl_minutes is not None:
        ET.SubElement(channel_el, "ttl").text = str(max(1, ttl_minutes))

    for item in items:
        item_el = ET.SubElement(channel_el, "item")
        ET.SubElement(item_el, "title").text = item.title
        ET.SubElement(item_el, "link").text = item.link

        guid_text = item.guid or item.link
        if guid_text:
            guid_el = ET.SubElement(item_el, "guid")
            guid_el.text = guid_text
            guid_el.set("isPermaLink", str(item.is_permalink).lower())

        if item.published is not None:
            ET.SubElement(item_el, "pubDate").text = format_rfc2822(item.published)

        if item.description:
            ET.SubElement(item_el, "description").text = item.description

        for category in item.categories or ():
            if category:
                ET.SubElement(item_el, "category").text = category

        for key, value in (item.extra or {}).items():
            if key and value is not None:
                ET.SubElement(item_el, key).text = str(value)

    xml_bytes = ET.tostring(rss_el, encoding="utf-8", xml_declaration=True)
    return xml_bytes.decode("utf-8")


def render_stories(
    stories: Iterable[DisplayStory],
    meta: FeedMetadata = DEFAULT_METADATA,
    ttl_minutes: Optional[int] = None,
) -> str:
    """Render a finished story list as the RSS page served to readers."""
    now = datetime.now(timezone.utc)
    items = [
        story_to_feed_item(story, rank=rank, now=now)
        for rank, story in enumerate(stories, start=1)
    ]
    return generate_rss2(meta, items, ttl_minutes=ttl_minutes)
