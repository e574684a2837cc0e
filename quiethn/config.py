from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from quiethn.cache import RefreshingStoryCache, StoryCache
from quiethn.client import API_BASE, HnClient
from quiethn.resolver import StoryResolver

DEFAULT_NUM_STORIES = 30
DEFAULT_CACHE_SECONDS = 1.0


@dataclass
class StoriesConfig:
    """Everything the story core needs to know; filled from the command line."""

    num_stories: int = DEFAULT_NUM_STORIES
    cache_seconds: float = DEFAULT_CACHE_SECONDS
    # None keeps the refresh synchronous on read.
    refresh_interval: Optional[float] = None
    api_base: str = API_BASE
    timeout: float = 10.0
    max_workers: int = 32
    allow_partial: bool = True

    def __post_init__(self) -> None:
        if self.num_stories < 1:
            raise ValueError(f"num_stories must be positive, got {self.num_stories}")
        if self.cache_seconds < 0:
            raise ValueError(f"cache_seconds cannot be negative, got {self.cache_seconds}")
        if self.refresh_interval is not None and self.refresh_interval <= 0:
            raise ValueError(f"refresh_interval must be positive, got {self.refresh_interval}")


def build_cache(config: StoriesConfig, client: Optional[HnClient] = None) -> StoryCache:
    """
    Wire client, resolver and cache together.

    A RefreshingStoryCache is returned when a refresh interval is set; the
    caller is responsible for starting and stopping it.
    """
    client = client or HnClient(api_base=config.api_base, timeout=config.timeout)
    resolver = StoryResolver(
        client,
        max_workers=config.max_workers,
        allow_partial=config.allow_partial,
    )
    if config.refresh_interval is not None:
        return RefreshingStoryCache(
            resolver,
            num_stories=config.num_stories,
            duration=config.cache_seconds,
            refresh_interval=config.refresh_interval,
        )
    return StoryCache(
        resolver,
        num_stories=config.num_stories,
        duration=config.cache_seconds,
    )
