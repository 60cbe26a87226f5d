"""FastAPI REST API for html-compressor."""

from __future__ import annotations

import hashlib
import json
import logging
import os
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from html_compressor import (
    CompressionResult,
    CompressorError,
    CompressorSettings,
    HtmlCompressor,
    __version__,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Redis Cache
# ---------------------------------------------------------------------------

redis_client: aioredis.Redis | None = None

# Cache TTL in seconds (default: 1 hour)
CACHE_TTL = int(os.getenv("CACHE_TTL", "3600"))

# Redis connection URL
REDIS_URL = os.getenv("REDIS_URL", "redis://redis:6379")


def _generate_cache_key(prefix: str, data: dict) -> str:
    """Generate a cache key from request data."""
    # Sort dict keys for consistent hashing
    sorted_data = json.dumps(data, sort_keys=True)
    hash_value = hashlib.sha256(sorted_data.encode()).hexdigest()[:16]
    return f"{prefix}:{hash_value}"


# ---------------------------------------------------------------------------
# Request / Response models
# ---------------------------------------------------------------------------


class CompressOptions(BaseModel):
    """Compressor switches shared by all compression endpoints."""

    remove_comments: bool = Field(default=True, description="Remove HTML comments")
    remove_multi_spaces: bool = Field(default=True, description="Collapse runs of whitespace")
    remove_intertag_spaces: bool = Field(default=False, description="Remove whitespace between tags")
    remove_quotes: bool = Field(default=False, description="Unquote simple attribute values")
    simple_doctype: bool = Field(default=False, description="Replace the DOCTYPE with <!DOCTYPE html>")
    remove_script_attributes: bool = Field(default=False)
    remove_style_attributes: bool = Field(default=False)
    remove_link_attributes: bool = Field(default=False)
    remove_form_attributes: bool = Field(default=False)
    remove_input_attributes: bool = Field(default=False)
    simple_boolean_attributes: bool = Field(default=False)
    remove_javascript_protocol: bool = Field(default=False)
    remove_http_protocol: bool = Field(default=False)
    remove_https_protocol: bool = Field(default=False)
    preserve_line_breaks: bool = Field(default=False)
    remove_surrounding_spaces: str | None = Field(
        default=None, description="Comma-separated tag names, or 'all'"
    )
    preserve_patterns: list[str] | None = Field(
        default=None, description="Custom regex patterns to keep verbatim"
    )


class CompressRequest(CompressOptions):
    """Request body for compression endpoints."""

    html: str = Field(..., description="HTML to compress")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "html": "<div>   <p>  Hello   World  </p>   </div>",
                "remove_intertag_spaces": True,
            }
        ]
    }}


class CompressResponse(BaseModel):
    """Response body for the /compress endpoint."""

    html: str = Field(..., description="Compressed HTML")


class CompressStatsResponse(BaseModel):
    """Response body for the /compress/stats endpoint."""

    html: str = Field(..., description="Compressed HTML")
    original_length: int = Field(..., description="Original document length")
    compressed_length: int = Field(..., description="Compressed document length")
    ratio: float = Field(..., description="Compression ratio (0.0-1.0)")
    savings_pct: float = Field(..., description="Percentage of characters saved")
    statistics: dict | None = Field(default=None, description="Per-category block statistics")


class BatchItem(BaseModel):
    """A single item in a batch compression request."""

    id: str = Field(..., description="Unique identifier for this item")
    html: str = Field(..., description="HTML to compress")


class BatchRequest(CompressOptions):
    """Request body for batch compression."""

    items: list[BatchItem] = Field(..., description="Documents to compress")


class BatchItemResponse(BaseModel):
    """A single result in a batch compression response."""

    id: str
    html: str
    original_length: int
    compressed_length: int
    ratio: float
    savings_pct: float


class BatchResponse(BaseModel):
    """Response body for batch compression."""

    items: list[BatchItemResponse]
    total_original_length: int
    total_compressed_length: int
    overall_ratio: float
    overall_savings_pct: float


class HealthResponse(BaseModel):
    """Response body for health check."""

    status: str = "ok"
    version: str
    cache_enabled: bool = False
    redis_connected: bool = False


class CacheStatsResponse(BaseModel):
    """Response body for cache statistics."""

    enabled: bool
    connected: bool
    ttl_seconds: int
    redis_url: str
    keys_count: int | None = None
    memory_used: str | None = None


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _build_compressor(req: CompressOptions, statistics: bool = False) -> HtmlCompressor:
    """Create a compressor from the option fields of a request model."""
    options = req.model_dump(exclude={"html", "items"})
    options["generate_statistics"] = statistics
    return HtmlCompressor(CompressorSettings.from_mapping(options))


def _result_to_stats_response(result: CompressionResult) -> CompressStatsResponse:
    """Convert a CompressionResult to the API response model."""
    return CompressStatsResponse(
        html=result.text,
        original_length=result.original_length,
        compressed_length=result.compressed_length,
        ratio=result.ratio,
        savings_pct=result.savings_pct,
        statistics=result.statistics.to_dict() if result.statistics is not None else None,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application lifespan - setup Redis connection."""
    global redis_client
    try:
        redis_client = await aioredis.from_url(
            REDIS_URL,
            encoding="utf-8",
            decode_responses=True,
        )
        await redis_client.ping()
        logger.info("Connected to Redis at %s", REDIS_URL)
    except Exception as e:
        logger.warning("Redis unavailable: %s. Caching disabled.", e)
        redis_client = None

    yield

    if redis_client:
        await redis_client.close()


app = FastAPI(
    title="HTML Compressor API",
    description=(
        "REST API for compressing HTML documents. Removes comments, redundant "
        "whitespace and default attributes while keeping <pre>, <textarea>, "
        "<script>, <style>, conditional comments and custom patterns intact."
    ),
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Check API health, version, and cache status."""
    redis_connected = False
    if redis_client:
        try:
            await redis_client.ping()
            redis_connected = True
        except Exception:
            logger.warning("Redis ping failed", exc_info=True)

    return HealthResponse(
        status="ok",
        version=__version__,
        cache_enabled=redis_client is not None,
        redis_connected=redis_connected,
    )


@app.get("/cache/stats", response_model=CacheStatsResponse, tags=["Cache"])
async def cache_stats() -> CacheStatsResponse:
    """Get cache statistics and Redis connection info."""
    keys_count = None
    memory_used = None
    connected = False

    if redis_client:
        try:
            await redis_client.ping()
            connected = True
            # Get number of keys matching our patterns
            keys_count = 0
            for pattern in ["compress:*", "compress_stats:*"]:
                keys_count += len(await redis_client.keys(pattern))

            # Get memory usage
            info = await redis_client.info("memory")
            memory_used = info.get("used_memory_human", "unknown")
        except Exception:
            logger.warning("Could not read Redis cache statistics", exc_info=True)

    return CacheStatsResponse(
        enabled=redis_client is not None,
        connected=connected,
        ttl_seconds=CACHE_TTL,
        redis_url=REDIS_URL.split("@")[-1] if "@" in REDIS_URL else REDIS_URL,
        keys_count=keys_count,
        memory_used=memory_used,
    )


@app.post("/compress", response_model=CompressResponse, tags=["Compression"])
async def compress_html(req: CompressRequest) -> CompressResponse:
    """Compress an HTML document.

    Scripts, styles, <pre> and <textarea> content, inline event handlers,
    conditional comments and custom patterns are kept verbatim.

    Results are cached in Redis for improved performance.
    """
    try:
        # Generate cache key
        cache_data = req.model_dump()
        cache_key = _generate_cache_key("compress", cache_data)

        # Try cache first
        if redis_client:
            cached = await redis_client.get(cache_key)
            if cached is not None:
                return CompressResponse(html=cached)

        result = _build_compressor(req).compress(req.html)

        # Store in cache
        if redis_client:
            await redis_client.setex(cache_key, CACHE_TTL, result)

        return CompressResponse(html=result)
    except (CompressorError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/compress/stats", response_model=CompressStatsResponse, tags=["Compression"])
async def compress_html_with_stats(req: CompressRequest) -> CompressStatsResponse:
    """Compress an HTML document and return compression statistics.

    Besides the overall ratio, the response lists how many blocks of each
    kind (script, style, pre, ...) were preserved and their sizes.

    Results are cached in Redis for improved performance.
    """
    try:
        # Generate cache key
        cache_data = req.model_dump()
        cache_key = _generate_cache_key("compress_stats", cache_data)

        # Try cache first
        if redis_client:
            cached = await redis_client.get(cache_key)
            if cached is not None:
                cached_data = json.loads(cached)
                return CompressStatsResponse(**cached_data)

        result = _build_compressor(req, statistics=True).compress_with_stats(req.html)
        response = _result_to_stats_response(result)

        # Store in cache
        if redis_client:
            await redis_client.setex(
                cache_key,
                CACHE_TTL,
                response.model_dump_json(),
            )

        return response
    except (CompressorError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@app.post("/compress/batch", response_model=BatchResponse, tags=["Compression"])
async def compress_batch(req: BatchRequest) -> BatchResponse:
    """Compress multiple HTML documents in a single request.

    Each item is compressed independently with the same settings.
    Returns per-item results and aggregate statistics.
    """
    try:
        compressor = _build_compressor(req)
        items: list[BatchItemResponse] = []
        total_orig = 0
        total_comp = 0

        for item in req.items:
            result = compressor.compress_with_stats(item.html)
            items.append(BatchItemResponse(
                id=item.id,
                html=result.text,
                original_length=result.original_length,
                compressed_length=result.compressed_length,
                ratio=result.ratio,
                savings_pct=result.savings_pct,
            ))
            total_orig += result.original_length
            total_comp += result.compressed_length

        overall_ratio = total_comp / total_orig if total_orig > 0 else 1.0
        return BatchResponse(
            items=items,
            total_original_length=total_orig,
            total_compressed_length=total_comp,
            overall_ratio=overall_ratio,
            overall_savings_pct=(1.0 - overall_ratio) * 100,
        )
    except (CompressorError, ValueError) as e:
        raise HTTPException(status_code=422, detail=str(e)) from e
