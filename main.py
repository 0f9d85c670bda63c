"""FastAPI app: serves the podcast feed and audio files, and runs processing."""

import asyncio
import logging
from datetime import timedelta
from functools import partial

import uvicorn
from fastapi import APIRouter, FastAPI, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse, StreamingResponse

from config import Settings, settings
from src import feed_builder
from src.exceptions import ProcessingInProgressError
from src.feed_cache import FeedCache
from src.gcs_storage import GCSStore
from src.processor import FEED_CONTENT_TYPE, FeedProcessor

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger(__name__)

router = APIRouter()


def _object_key(files_prefix: str, name: str) -> str | None:
    """Map a /files/ path to a store key, or None if the name is unsafe."""
    if not name or name.startswith("/") or ".." in name.split("/"):
        return None
    return files_prefix + name


# --- Health ---

@router.get("/health")
async def health():
    """Liveness probe with no dependencies."""
    return JSONResponse({"status": "ok"})


# --- Feed & Files ---

@router.get("/")
@router.get("/feed")
@router.get("/index.xml")
async def feed(request: Request) -> Response:
    """Serve index.xml through the feed cache."""
    state = request.app.state
    try:
        content = await asyncio.wait_for(
            asyncio.to_thread(state.feed_cache.read),
            timeout=state.settings.read_timeout_seconds,
        )
    except Exception:
        logger.exception("Error fetching %s", state.settings.gcs_index_object)
        return JSONResponse({"error": "Failed to fetch podcast feed"}, status_code=500)
    return Response(content=content, media_type=FEED_CONTENT_TYPE)


@router.get("/files/{name:path}")
async def audio_file(name: str, request: Request) -> Response:
    """Stream an audio object, or redirect to a pre-signed GCS URL."""
    state = request.app.state
    cfg: Settings = state.settings

    key = _object_key(cfg.files_prefix, name)
    if key is None:
        return JSONResponse({"error": "Invalid filename."}, status_code=400)

    try:
        if cfg.file_delivery == "redirect":
            url = await asyncio.wait_for(
                asyncio.to_thread(state.store.signed_url, key, timedelta(seconds=cfg.signed_url_ttl_seconds)),
                timeout=cfg.read_timeout_seconds,
            )
            return RedirectResponse(url, status_code=302)

        size, chunks = await asyncio.wait_for(
            asyncio.to_thread(state.store.open, key),
            timeout=cfg.read_timeout_seconds,
        )
    except Exception:
        logger.exception("Error fetching %s", key)
        return JSONResponse({"error": "Failed to fetch podcast file"}, status_code=500)

    return StreamingResponse(
        chunks,
        media_type="audio/mpeg",
        headers={"Content-Length": str(size)},
    )


# --- Processing ---

@router.post("/process")
async def process(request: Request) -> Response:
    """Run one full processing pass inside the request."""
    state = request.app.state
    processor: FeedProcessor = state.processor

    if processor.running:
        return JSONResponse({"error": "Processing already in progress"}, status_code=409)

    try:
        result = await asyncio.wait_for(
            asyncio.to_thread(processor.run),
            timeout=state.settings.process_timeout_seconds,
        )
    except ProcessingInProgressError:
        return JSONResponse({"error": "Processing already in progress"}, status_code=409)
    except Exception:
        logger.exception("Error processing files")
        return JSONResponse({"error": "Processing failed"}, status_code=500)

    logger.info(
        "Processing completed: %d items added, %d objects promoted",
        result.items_added, len(result.promoted),
    )
    return JSONResponse({"status": "processing completed"})


# --- App factory ---

def create_app(store=None, app_settings: Settings | None = None) -> FastAPI:
    """Build an app with its own store, feed cache and processor.

    Without an injected store a GCSStore is created, which requires
    GCS_BUCKET; a ConfigError here stops the server from starting.
    """
    cfg = app_settings or settings
    if store is None:
        store = GCSStore(cfg.require_bucket(), cfg.gcs_credentials_json)

    def load_feed() -> str:
        return store.read(cfg.gcs_index_object).decode("utf-8")

    cache = FeedCache(load_feed, ttl=cfg.cache_ttl_seconds)

    seed = None
    if cfg.seeds_channel:
        seed = partial(
            feed_builder.build_channel_document,
            title=cfg.podcast_title,
            link=cfg.podcast_link or cfg.base_url,
            description=cfg.podcast_description,
            image_url=cfg.podcast_image_url,
            author=cfg.podcast_author,
        )

    processor = FeedProcessor(
        store,
        cache,
        index_key=cfg.gcs_index_object,
        files_prefix=cfg.files_prefix,
        base_url=cfg.base_url,
        promote_root_objects=cfg.promote_root_objects,
        seed=seed,
    )

    app = FastAPI(title="Podcast Processor", description="Podcast feed processor and server")
    app.state.settings = cfg
    app.state.store = store
    app.state.feed_cache = cache
    app.state.processor = processor
    app.include_router(router)
    return app


if __name__ == "__main__":
    logger.info("Starting server on port %s", settings.port)
    uvicorn.run(create_app(), host=settings.host, port=settings.port)
