"""Compress API endpoint."""

import asyncio
import base64
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from src.api.config import (
    DEFAULT_MAX_ITERATIONS,
    DEFAULT_MAX_QUALITY,
    DEFAULT_MIN_QUALITY,
    settings,
)
from src.api.models import CompressRequest, CompressResponse
from src.core.compressor import CompressionResult, SizeTargetCompressor
from src.core.errors import (
    DecodeError,
    EncodeError,
    InvalidArgumentError,
    RenderError,
)
from src.core.imaging import supported_formats

logger = logging.getLogger(__name__)

limiter = Limiter(key_func=get_remote_address, enabled=settings.rate_limit_enabled)

router = APIRouter(prefix="/api/v1")


def get_compressor() -> SizeTargetCompressor:
    """Get compressor instance."""
    return SizeTargetCompressor()


async def process_compress_request(
    data: bytes,
    params: CompressRequest,
    compressor: SizeTargetCompressor,
) -> Response:
    """Core compress processing logic."""
    if not data:
        raise HTTPException(status_code=400, detail="Request body must contain image data")

    if len(data) > settings.max_input_size_bytes:
        raise HTTPException(
            status_code=413,
            detail=(
                f"Image too large: {len(data) / (1024 * 1024):.2f}MB "
                f"(max: {settings.max_input_size_mb}MB)"
            ),
        )

    options = params.to_options(settings)
    logger.info(
        f"Compressing upload of {len(data) / 1024:.1f}KB to "
        f"{params.target_kb:.1f}KB as {options.mime_type}"
    )

    result = await compressor.compress(data, options)

    return _format_response(result, len(data), params.output)


@router.post("/compress")
@limiter.limit(f"{settings.rate_limit_per_minute}/minute")
@limiter.limit(f"{settings.rate_limit_per_hour}/hour")
async def compress_image(
    request: Request,
    target_kb: float = Query(..., gt=0, description="Target output size in kilobytes"),
    format: Literal["jpeg", "webp", "png", "avif"] = Query(
        default=settings.default_format, description="Output image format"
    ),
    max_width: Optional[int] = Query(default=None, ge=1, description="Maximum width in pixels"),
    max_height: Optional[int] = Query(
        default=None, ge=1, description="Maximum height in pixels"
    ),
    max_iterations: int = Query(
        default=DEFAULT_MAX_ITERATIONS, ge=1, le=50, description="Quality search iterations"
    ),
    min_quality: float = Query(
        default=DEFAULT_MIN_QUALITY, ge=0.0, le=1.0, description="Lowest quality to try"
    ),
    max_quality: float = Query(
        default=DEFAULT_MAX_QUALITY, ge=0.0, le=1.0, description="Highest quality to try"
    ),
    allow_scale_down: bool = Query(default=True, description="Allow resolution reduction"),
    output: Literal["binary", "base64", "json"] = Query(
        default="binary", description="Response format"
    ),
    compressor: SizeTargetCompressor = Depends(get_compressor),
) -> Response:
    """
    Compress the uploaded image (raw request body) to roughly target_kb.

    Returns the binary image, a base64 data URI, or JSON with metadata.
    """
    params = CompressRequest(
        target_kb=target_kb,
        format=format,
        max_width=max_width,
        max_height=max_height,
        max_iterations=max_iterations,
        min_quality=min_quality,
        max_quality=max_quality,
        allow_scale_down=allow_scale_down,
        output=output,
    )

    try:
        data = await request.body()
        response = await asyncio.wait_for(
            process_compress_request(data=data, params=params, compressor=compressor),
            timeout=settings.request_timeout_seconds,
        )
        return response

    except asyncio.TimeoutError:
        logger.error(f"Request timeout after {settings.request_timeout_seconds}s")
        raise HTTPException(
            status_code=504,
            detail=(
                f"Request timeout: processing took longer than "
                f"{settings.request_timeout_seconds}s"
            ),
        )

    except HTTPException:
        raise

    except InvalidArgumentError as e:
        logger.error(f"Invalid compression options: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except DecodeError as e:
        logger.error(f"Image decode error: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except (RenderError, EncodeError) as e:
        logger.error(f"Image processing error: {e}")
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        logger.error(f"Unexpected error compressing image: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")


def _format_response(result: CompressionResult, original_size: int, output: str) -> Response:
    """
    Format response based on output type.

    Args:
        result: Compression result
        original_size: Size of the uploaded image in bytes
        output: Output format ('binary', 'base64', 'json')

    Returns:
        Formatted response
    """
    if output == "binary":
        return Response(
            content=result.data,
            media_type=result.mime_type,
            headers={
                "Content-Length": str(result.size_bytes),
                "X-Compression-Quality": f"{result.quality:.4f}",
                "X-Downscale-Ratio": f"{result.downscale_ratio:.4f}",
                "X-Compression-Target-Met": str(result.target_met).lower(),
                "X-Image-Width": str(result.width),
                "X-Image-Height": str(result.height),
            },
        )

    base64_data = base64.b64encode(result.data).decode("utf-8")

    if output == "base64":
        return PlainTextResponse(content=f"data:{result.mime_type};base64,{base64_data}")

    elif output == "json":
        body = CompressResponse(
            data=base64_data,
            format=result.format,
            mime_type=result.mime_type,
            width=result.width,
            height=result.height,
            size_bytes=result.size_bytes,
            target_size_bytes=result.target_size_bytes,
            target_met=result.target_met,
            quality=result.quality,
            downscale_ratio=result.downscale_ratio,
            attempts=result.attempts,
            encode_calls=result.encode_calls,
            compression_ratio=result.size_bytes / original_size,
            original_size_bytes=original_size,
            processing_ms=result.processing_ms,
        )
        return JSONResponse(content=body.model_dump())

    else:
        raise HTTPException(status_code=400, detail=f"Invalid output format: {output}")


@router.get("/health")
async def health_check() -> JSONResponse:
    """
    Health check endpoint.

    Reports which output formats the installed Pillow can encode.
    """
    checks: dict[str, dict[str, object]] = {}
    overall_status = "healthy"

    try:
        formats = supported_formats()
        checks["encoders"] = {"status": "healthy", "formats": formats}
        if "jpeg" not in formats:
            checks["encoders"]["status"] = "degraded"
            overall_status = "degraded"
    except Exception as e:
        checks["encoders"] = {"status": "unhealthy", "error": str(e)}
        overall_status = "degraded"

    return JSONResponse(
        content={
            "status": overall_status,
            "checks": checks,
        }
    )
