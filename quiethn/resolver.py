from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Optional, Sequence

from quiethn.client import HnClient
from quiethn.errors import (
    DecodeError,
    InsufficientStories,
    TransportError,
    UpstreamUnavailable,
)
from quiethn.models import DisplayStory
from quiethn.stories import is_qualifying_story, to_display_story

log = logging.getLogger(__name__)

# Roughly one in five front page items is a job, an Ask HN or otherwise
# has no link, so every round asks for a quarter more ids than it needs.
OVERFETCH_RATIO = 5 / 4


def over_fetch_window(missing: int) -> int:
    return math.ceil(missing * OVERFETCH_RATIO)


class StoryResolver:
    """
    Turns the ranked id list into an ordered list of displayable stories.

    Items are fetched concurrently, one task per id, in rounds sized by
    over_fetch_window until enough stories are collected or the id list
    runs out. The output keeps the upstream ranking.
    """

    def __init__(
        self,
        client: Optional[HnClient] = None,
        max_workers: int = 32,
        allow_partial: bool = True,
    ) -> None:
        self.client = client or HnClient()
        self.max_workers = max_workers
        self.allow_partial = allow_partial

    def resolve_top_stories(self, num_stories: int) -> tuple[DisplayStory, ...]:
        if num_stories < 1:
            raise ValueError(f"num_stories must be positive, got {num_stories}")

        try:
            ids = self.client.fetch_top_ids()
        except (TransportError, DecodeError) as exc:
            raise UpstreamUnavailable("Failed to load top stories") from exc

        stories: list[DisplayStory] = []
        at = 0
        while len(stories) < num_stories and at < len(ids):
            window = over_fetch_window(num_stories - len(stories))
            batch = ids[at : at + window]
            log.debug("Resolving ids %s..%s (%s items)", at, at + len(batch), len(batch))
            stories.extend(self.resolve_ids(batch))
            at += window

        if len(stories) < num_stories:
            if not self.allow_partial:
                raise InsufficientStories(num_stories, len(stories))
            log.warning(
                "Id list exhausted after %s ids: %s of %s stories",
                len(ids),
                len(stories),
                num_stories,
            )

        stories = stories[:num_stories]
        log.info("Resolved %s stories from %s ids", len(stories), min(at, len(ids)))
        return tuple(stories)

    def resolve_ids(self, ids: Sequence[int]) -> list[DisplayStory]:
        """
        Fetch every id in parallel and return the qualifying stories in
        the order of `ids`. Items that fail to load are left out.
        """
        if not ids:
            return []

        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(ids))) as pool:
            futures = {
                pool.submit(self._fetch_story, item_id): idx
                for idx, item_id in enumerate(ids)
            }
            # Block until the whole round is done before looking at results.
            wait(futures)

        results = sorted(
            ((idx, future.result()) for future, idx in futures.items()),
            key=lambda pair: pair[0],
        )
        return [story for _, story in results if story is not None]

    def _fetch_story(self, item_id: int) -> Optional[DisplayStory]:
        try:
            item = self.client.fetch_item(item_id)
        except (TransportError, DecodeError) as exc:
            log.warning("Could not load item %s: %s", item_id, exc)
            return None

        if not is_qualifying_story(item):
            log.debug("Skip item %s of type %r without link", item_id, item.type)
            return None
        return to_display_story(item)
