"""
Query API middleware.

Turns every failure into the ``{success: false, message}`` envelope.
Stack traces and upstream details stay in the log.
"""

from aiohttp import web
from loguru import logger

from app.utils.exceptions import StoreUnavailableError


def error_response(status: int, message: str) -> web.Response:
    return web.json_response(
        {"success": False, "message": message}, status=status
    )


@web.middleware
async def error_middleware(
    request: web.Request, handler
) -> web.StreamResponse:
    """Map exceptions raised by handlers to JSON error responses."""
    try:
        return await handler(request)
    except web.HTTPException as e:
        if e.status < 400:
            raise
        return error_response(e.status, e.reason)
    except StoreUnavailableError as e:
        logger.error(f"[API] {request.method} {request.path}: {e}")
        return error_response(500, "Internal server error")
    except Exception as e:
        logger.exception(
            f"[API] Unhandled error on {request.method} {request.path}: {e}"
        )
        return error_response(500, "Internal server error")
