from __future__ import annotations

import logging
import math
import time
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.responses import Response
from fastapi.concurrency import run_in_threadpool

from quiethn.cache import RefreshingStoryCache, StoryCache
from quiethn.errors import HnError
from quiethn.rss import render_stories

log = logging.getLogger(__name__)

RSS_MEDIA_TYPE = "application/rss+xml"


def create_app(cache: StoryCache) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if isinstance(cache, RefreshingStoryCache):
            # The first refresh runs on the scheduler thread.
            cache.start()
        try:
            yield
        finally:
            if isinstance(cache, RefreshingStoryCache):
                # shutdown(wait=True) joins a running refresh, keep it off the event loop.
                await run_in_threadpool(cache.stop)
                log.info("Background refresh stopped.")

    app = FastAPI(title="quiethn", version="0.1.0", lifespan=lifespan)
    app.state.cache = cache

    # Plain def: the cache blocks on network I/O, so FastAPI runs it in its threadpool.
    @app.get("/")
    def top_stories(count: Optional[int] = Query(None, ge=1, le=500)):
        start = time.perf_counter()
        try:
            stories = cache.get_top_stories(count)
        except HnError as exc:
            log.warning("Could not serve top stories: %s", exc)
            raise HTTPException(status_code=502, detail=str(exc)) from exc

        body = render_stories(stories, ttl_minutes=math.ceil(cache.duration / 60))
        elapsed = time.perf_counter() - start
        return Response(
            content=body,
            media_type=RSS_MEDIA_TYPE,
            headers={"X-Render-Time": f"{elapsed:.6f}"},
        )

    @app.get("/health")
    def health():
        return {"status": "ok"}

    return app
