"""
Helpers for calling boto3 from coroutines.
"""

import asyncio
from typing import Any, Callable, TypeVar

T = TypeVar("T")


async def call(method: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run a blocking boto3 call without stalling the event loop."""
    return await asyncio.to_thread(method, *args, **kwargs)


def error_code(error: Exception) -> str:
    """Error code of a botocore ``ClientError`` (empty for anything else)."""
    response = getattr(error, "response", None) or {}
    return str(response.get("Error", {}).get("Code", ""))


def http_status(error: Exception) -> int:
    """HTTP status code of a botocore ``ClientError`` (0 when unknown)."""
    response = getattr(error, "response", None) or {}
    return int(response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) or 0)
