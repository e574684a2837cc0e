from __future__ import annotations

import argparse
import logging
from pathlib import Path

import uvicorn

from quiethn.app import create_app
from quiethn.cache import RefreshingStoryCache
from quiethn.client import HnClient
from quiethn.config import DEFAULT_CACHE_SECONDS, DEFAULT_NUM_STORIES, StoriesConfig, build_cache
from quiethn.rss import render_stories

log = logging.getLogger(__name__)

DEFAULT_PORT = 3000


def build_feed(config: StoriesConfig) -> str:
    """Resolve the top stories once and render them, without starting a server."""
    with HnClient(api_base=config.api_base, timeout=config.timeout) as client:
        cache = build_cache(config, client)
        if isinstance(cache, RefreshingStoryCache):
            # A one-off build has nothing to keep warm.
            stories = cache.refresh()
        else:
            stories = cache.get_top_stories()
    return render_stories(stories)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Serve the Hacker News top stories as a feed.")
    parser.add_argument(
        "--stories",
        type=int,
        default=DEFAULT_NUM_STORIES,
        help="Number of stories to include.",
    )
    parser.add_argument(
        "--cache-seconds",
        type=float,
        default=DEFAULT_CACHE_SECONDS,
        help="How long a resolved story list is served before it is refreshed.",
    )
    parser.add_argument(
        "--refresh-interval",
        type=float,
        default=None,
        help="Refresh the stories in the background every N seconds instead of on request.",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the feed once to this path and exit.",
    )
    parser.add_argument("--host", type=str, default="127.0.0.1", help="Interface to listen on.")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Port number to listen on.")
    parser.add_argument("--log-level", type=str, default="INFO", help="Logging level.")
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> str | None:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level.upper(), logging.INFO),
        format="%(asctime)s  %(levelname)-8s  %(name)s  %(message)s",
    )
    config = StoriesConfig(
        num_stories=args.stories,
        cache_seconds=args.cache_seconds,
        refresh_interval=args.refresh_interval,
    )

    if args.output:
        feed_xml = build_feed(config)
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(feed_xml, encoding="utf-8")
        log.info("Wrote %s", output_path)
        return feed_xml

    with HnClient(api_base=config.api_base, timeout=config.timeout) as client:
        app = create_app(build_cache(config, client))
        log.info("Serving %s stories on http://%s:%s/", config.num_stories, args.host, args.port)
        uvicorn.run(app, host=args.host, port=args.port)
    return None


if __name__ == "__main__":
    # python build_feed.py --stories 30 --port 3000
    # python build_feed.py --output feeds/hacker-news.xml
    main()
