"""
File operation utilities

This module handles downloads into the run's working directory and reading
and writing of text artifacts.
"""
import logging
from pathlib import Path
import asyncio

import aiofiles
import httpx


logger = logging.getLogger(__name__)


async def download_file(
    client: httpx.AsyncClient,
    url: str,
    destination: Path,
    timeout: float = 30.0,
    max_retries: int = 1,
    backoff_factor: float = 2.0
) -> Path:
    """
    Download a URL into destination

    Transient network errors (timeouts, connection errors) and 5xx responses
    are retried when max_retries > 1. 4xx responses are never retried.

    Args:
        client: Shared HTTP client for the run
        url: URL to download from
        destination: File path to write the response body to
        timeout: HTTP timeout in seconds
        max_retries: Maximum number of attempts (1 disables retries)
        backoff_factor: Exponential backoff multiplier (wait = backoff_factor ^ attempt)

    Returns:
        destination

    Raises:
        httpx.HTTPError: If download fails after all attempts
    """
    logger.debug(f"Downloading {url} -> {destination}")

    attempts = max(1, max_retries)
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            response = await client.get(url, timeout=timeout)
            response.raise_for_status()

            async with aiofiles.open(destination, 'wb') as f:
                await f.write(response.content)

            logger.debug(f"Downloaded {len(response.content) / 1024:.1f} KB from {url}")
            return destination

        except (httpx.TimeoutException, httpx.ConnectError) as e:
            last_error = e
            if attempt < attempts - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    f"Download attempt {attempt + 1}/{attempts} for {url} failed ({type(e).__name__}). "
                    f"Retrying in {wait_time:.1f}s..."
                )
                await asyncio.sleep(wait_time)

        except httpx.HTTPStatusError as e:
            if 400 <= e.response.status_code < 500:
                raise

            last_error = e
            if attempt < attempts - 1:
                wait_time = backoff_factor ** attempt
                logger.warning(
                    f"Download attempt {attempt + 1}/{attempts} for {url} failed "
                    f"(HTTP {e.response.status_code}). Retrying in {wait_time:.1f}s..."
                )
                await asyncio.sleep(wait_time)

    if last_error:
        raise last_error

    raise RuntimeError(f"Failed to download {url} after {attempts} attempts")


async def read_text_file(file_path: Path) -> str:
    """Read a downloaded document as UTF-8, replacing undecodable bytes"""
    async with aiofiles.open(file_path, 'r', encoding='utf-8', errors='replace') as f:
        return await f.read()


async def write_text_file(file_path: Path, content: str | bytes) -> Path:
    """
    Write an output artifact, replacing any previous version

    Args:
        file_path: Target path; parent directories are created
        content: Text (written as UTF-8) or already encoded bytes

    Returns:
        file_path
    """
    file_path.parent.mkdir(parents=True, exist_ok=True)
    data = content.encode('utf-8') if isinstance(content, str) else content

    async with aiofiles.open(file_path, 'wb') as f:
        await f.write(data)

    logger.info(f"Wrote {len(data) / 1024:.1f} KB to {file_path}")
    return file_path
