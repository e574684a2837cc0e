import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

import context  # noqa: F401

from fakes import FakeClient

import build_feed
from quiethn.cache import RefreshingStoryCache, StoryCache
from quiethn.config import StoriesConfig, build_cache

FEED = '<?xml version="1.0" encoding="utf-8"?><rss version="2.0"><channel /></rss>'


class TestParseArgs(unittest.TestCase):
    def test_defaults(self):
        args = build_feed.parse_args([])
        self.assertEqual(args.stories, 30)
        self.assertEqual(args.port, 3000)
        self.assertEqual(args.cache_seconds, 1.0)
        self.assertIsNone(args.refresh_interval)
        self.assertIsNone(args.output)

    def test_flags(self):
        args = build_feed.parse_args(["--stories", "10", "--refresh-interval", "2.5", "--port", "8080"])
        self.assertEqual(args.stories, 10)
        self.assertEqual(args.refresh_interval, 2.5)
        self.assertEqual(args.port, 8080)


class TestMain(unittest.TestCase):
    def test_output_writes_feed_once(self):
        with tempfile.TemporaryDirectory() as tmp:
            output = Path(tmp) / "feeds" / "hn.xml"
            with patch.object(build_feed, "build_feed", return_value=FEED) as build:
                result = build_feed.main(["--output", str(output), "--stories", "5"])

            self.assertEqual(result, FEED)
            self.assertEqual(output.read_text(encoding="utf-8"), FEED)
            config = build.call_args.args[0]
            self.assertEqual(config.num_stories, 5)

    def test_serve_runs_uvicorn_and_closes_client(self):
        with patch.object(build_feed, "HnClient") as client_cls, patch.object(
            build_feed.uvicorn, "run"
        ) as run:
            result = build_feed.main(["--port", "4000"])

        self.assertIsNone(result)
        self.assertEqual(run.call_args.kwargs["port"], 4000)
        client_cls.return_value.__exit__.assert_called_once()


class TestStoriesConfig(unittest.TestCase):
    def test_rejects_invalid_values(self):
        with self.assertRaises(ValueError):
            StoriesConfig(num_stories=0)
        with self.assertRaises(ValueError):
            StoriesConfig(refresh_interval=0)

    def test_build_cache_picks_discipline(self):
        plain = build_cache(StoriesConfig(), client=FakeClient([]))
        refreshing = build_cache(
            StoriesConfig(cache_seconds=10, refresh_interval=5), client=FakeClient([])
        )

        self.assertIs(type(plain), StoryCache)
        self.assertIsInstance(refreshing, RefreshingStoryCache)
        self.assertEqual(refreshing.refresh_interval, 5)


if __name__ == "__main__":
    unittest.main()
