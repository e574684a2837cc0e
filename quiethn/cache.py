from __future__ import annotations

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler

from quiethn.errors import UpstreamUnavailable
from quiethn.models import CacheEntry, DisplayStory
from quiethn.resolver import StoryResolver

log = logging.getLogger(__name__)

Clock = Callable[[], float]


class StoryCache:
    """
    Serves the last resolved story list until it expires.

    A read after expiry resolves a fresh list before returning. The lock is
    held for the whole refresh, so readers arriving during a slow refresh
    wait for it instead of starting their own. If the refresh fails the
    error goes to the caller and the previous entry is left in place.
    """

    def __init__(
        self,
        resolver: StoryResolver,
        num_stories: int = 30,
        duration: float = 1.0,
        clock: Clock = time.monotonic,
    ) -> None:
        if num_stories < 1:
            raise ValueError(f"num_stories must be positive, got {num_stories}")
        self.resolver = resolver
        self.num_stories = num_stories
        self.duration = duration
        self._clock = clock
        self._lock = threading.Lock()
        self._entry: Optional[CacheEntry] = None

    @property
    def entry(self) -> Optional[CacheEntry]:
        with self._lock:
            return self._entry

    def get_top_stories(self, count: Optional[int] = None) -> tuple[DisplayStory, ...]:
        count = self._check_count(count)
        with self._lock:
            entry = self._entry
            if entry is not None and entry.num_stories == count and entry.is_fresh(self._clock()):
                return entry.stories

            log.info("Story cache expired, resolving %s stories", count)
            stories = self.resolver.resolve_top_stories(count)
            self._entry = self._new_entry(stories, count)
            return stories

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None

    def _check_count(self, count: Optional[int]) -> int:
        if count is None:
            return self.num_stories
        if count < 1:
            raise ValueError(f"count must be positive, got {count}")
        return count

    def _new_entry(self, stories: tuple[DisplayStory, ...], count: int) -> CacheEntry:
        now = self._clock()
        return CacheEntry(
            stories=stories,
            num_stories=count,
            duration=self.duration,
            created_at=now,
            expires_at=now + self.duration,
        )


class RefreshingStoryCache(StoryCache):
    """
    Keeps the story list warm from an APScheduler interval job.

    Readers never trigger a fetch: they get whatever the refresher stored
    last, however old it is. A failing refresh is logged and the previous
    entry keeps being served.
    """

    def __init__(
        self,
        resolver: StoryResolver,
        num_stories: int = 30,
        duration: float = 1.0,
        refresh_interval: float = 0.5,
        clock: Clock = time.monotonic,
    ) -> None:
        super().__init__(resolver, num_stories=num_stories, duration=duration, clock=clock)
        if refresh_interval <= 0:
            raise ValueError(f"refresh_interval must be positive, got {refresh_interval}")
        if refresh_interval >= duration:
            log.warning(
                "Refresh interval %.2fs is not shorter than cache duration %.2fs",
                refresh_interval,
                duration,
            )
        self.refresh_interval = refresh_interval
        self._scheduler: Optional[BackgroundScheduler] = None

    @property
    def running(self) -> bool:
        return self._scheduler is not None and self._scheduler.running

    def start(self) -> None:
        """
        Schedule the refresh job. The first run is due immediately but happens
        on the scheduler's worker thread, so this call does not block on I/O.
        """
        if self.running:
            return
        self._scheduler = BackgroundScheduler(daemon=True)
        self._scheduler.add_job(
            self._refresh_logged,
            "interval",
            seconds=self.refresh_interval,
            next_run_time=datetime.now(timezone.utc),
            id="refresh_stories",
            max_instances=1,
            coalesce=True,
            misfire_grace_time=None,
            replace_existing=True,
        )
        self._scheduler.start()
        log.info("Background refresh started, every %.2fs", self.refresh_interval)

    def stop(self, wait: bool = True) -> None:
        if self._scheduler is None:
            return
        if self._scheduler.running:
            self._scheduler.shutdown(wait=wait)
        self._scheduler = None

    def refresh(self) -> tuple[DisplayStory, ...]:
        stories = self.resolver.resolve_top_stories(self.num_stories)
        entry = self._new_entry(stories, self.num_stories)
        with self._lock:
            self._entry = entry
        return stories

    def get_top_stories(self, count: Optional[int] = None) -> tuple[DisplayStory, ...]:
        """Return up to `count` stories from the last successful refresh."""
        count = self._check_count(count)
        with self._lock:
            entry = self._entry
        if entry is None:
            raise UpstreamUnavailable("No stories have been loaded yet")
        return entry.stories[:count]

    def __enter__(self) -> "RefreshingStoryCache":
        self.start()
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.stop()

    def _refresh_logged(self) -> None:
        try:
            stories = self.refresh()
        except Exception:
            log.exception("Background story refresh failed, keeping previous entry")
            return
        log.debug("Background refresh stored %s stories", len(stories))
