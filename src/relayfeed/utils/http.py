"""HTTP and file helpers for loading JSON resources.

Provides bounded JSON reading so an oversized response (for example a
misconfigured moderation wordlist URL) cannot exhaust memory, and a single
``load_json_source`` entry point that accepts either an ``http(s)`` URL or a
local path.

See Also:
    [load_default_words][relayfeed.client.validator.load_default_words]:
        Moderation wordlist loader built on
        [load_json_source][relayfeed.utils.http.load_json_source].
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import aiohttp


DEFAULT_MAX_SIZE = 1_048_576


async def _read_bounded(response: aiohttp.ClientResponse, max_size: int) -> bytes:
    """Read an entire response body with size enforcement.

    Accumulates chunks until EOF or until the size limit is exceeded, which
    also handles chunked transfer-encoding correctly.

    Raises:
        ValueError: If the response body exceeds *max_size*.
    """
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await response.content.read(max_size + 1 - total)
        if not chunk:
            break
        total += len(chunk)
        if total > max_size:
            raise ValueError(f"Response body too large: >{max_size} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def read_bounded_json(response: aiohttp.ClientResponse, max_size: int) -> Any:
    """Read and parse a JSON response body with size enforcement.

    Raises:
        ValueError: If the response body exceeds *max_size*.
        json.JSONDecodeError: If the body is not valid JSON.
    """
    body = await _read_bounded(response, max_size)
    return json.loads(body)


async def fetch_json(
    url: str,
    *,
    timeout: float = 10.0,  # noqa: ASYNC109
    max_size: int = DEFAULT_MAX_SIZE,
) -> Any:
    """GET *url* and return its parsed JSON body.

    Raises:
        aiohttp.ClientError: On connection failures or non-2xx status.
        TimeoutError: If the request exceeds *timeout*.
        ValueError: If the body is too large or not valid JSON.
    """
    client_timeout = aiohttp.ClientTimeout(total=timeout)
    async with (
        aiohttp.ClientSession(timeout=client_timeout) as session,
        session.get(url, headers={"Cache-Control": "no-cache"}) as response,
    ):
        response.raise_for_status()
        return await read_bounded_json(response, max_size)


async def load_json_source(
    source: str,
    *,
    timeout: float = 10.0,  # noqa: ASYNC109
    max_size: int = DEFAULT_MAX_SIZE,
) -> Any:
    """Load JSON from an ``http(s)`` URL or a local file path.

    Raises:
        aiohttp.ClientError: On HTTP failures.
        TimeoutError: If an HTTP request exceeds *timeout*.
        OSError: If a local file cannot be read.
        ValueError: If the payload is too large or not valid JSON.
    """
    if urlparse(source).scheme in ("http", "https"):
        return await fetch_json(source, timeout=timeout, max_size=max_size)

    path = Path(source)
    size = (await asyncio.to_thread(path.stat)).st_size
    if size > max_size:
        raise ValueError(f"File too large: {source} (>{max_size} bytes)")
    text = await asyncio.to_thread(path.read_text, encoding="utf-8")
    return json.loads(text)
