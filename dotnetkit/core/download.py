"""
Installer download with retry logic and checksum verification.

Global installs fetch a multi-hundred-megabyte installer package. This module
streams it to disk with:
- HTTP/HTTPS downloads with TLS verification
- Retry logic with exponential backoff
- SHA-512 verification during download (the hash .NET release metadata publishes)
"""

import hashlib
import logging
import time
from pathlib import Path
from typing import Optional

import requests
from requests.exceptions import RequestException

from dotnetkit.core.exceptions import DotnetKitError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 64 * 1024

class DownloadError(DotnetKitError):
    """Exception raised when download fails."""

    pass


class ChecksumError(DownloadError):
    """Exception raised when checksum verification fails."""

    pass


def download_file(
    url: str,
    destination: Path,
    expected_hash: Optional[str] = None,
    timeout: float = 30,
    max_retries: int = 3,
) -> Path:
    """
    Download file from URL to destination with retry logic and checksum verification.

    Args:
        url: URL to download from
        destination: Local path to save file
        expected_hash: Expected SHA-512 hash (verified during download)
        timeout: Request timeout in seconds
        max_retries: Maximum number of attempts

    Returns:
        Path to downloaded file

    Raises:
        DownloadError: If download fails after retries
        ChecksumError: If checksum doesn't match expected value
        ValueError: If URL or destination is invalid

    Example:
        >>> download_file(
        ...     "https://builds.dotnet.microsoft.com/.../dotnet-sdk-8.0.101-osx-arm64.pkg",
        ...     Path("installers/dotnet-sdk-8.0.101-osx-arm64.pkg"),
        ...     expected_hash="0c5b...",
        ... )
    """
    if not url:
        raise ValueError("URL cannot be empty")

    if not destination:
        raise ValueError("Destination path cannot be empty")

    destination = Path(destination)
    destination.parent.mkdir(parents=True, exist_ok=True)

    for attempt in range(max_retries):
        try:
            return _download(url, destination, expected_hash, timeout)
        except RequestException as e:
            if attempt == max_retries - 1:
                raise DownloadError(
                    f"Download of {url} failed after {max_retries} attempts: {e}"
                ) from e

            backoff_seconds = 2**attempt
            logger.warning(
                f"Download attempt {attempt + 1} failed: {e}. "
                f"Retrying in {backoff_seconds}s..."
            )
            time.sleep(backoff_seconds)

    raise DownloadError(f"Download of {url} was not attempted (max_retries={max_retries})")


def _download(
    url: str,
    destination: Path,
    expected_hash: Optional[str],
    timeout: float,
) -> Path:
    logger.info(f"Downloading from {url}")

    response = requests.get(url, stream=True, timeout=timeout, allow_redirects=True)
    response.raise_for_status()

    hasher = hashlib.sha512() if expected_hash else None
    downloaded = 0

    with response, open(destination, "wb") as f:
        for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
            if not chunk:
                continue
            f.write(chunk)
            downloaded += len(chunk)
            if hasher:
                hasher.update(chunk)

    if hasher:
        actual_hash = hasher.hexdigest()
        if actual_hash.lower() != expected_hash.lower():
            destination.unlink()
            raise ChecksumError(
                f"Checksum mismatch for {destination.name}: "
                f"expected {expected_hash}, got {actual_hash}"
            )
        logger.debug("Checksum verified successfully")

    logger.info(f"Download complete: {destination} ({downloaded} bytes)")
    return destination


__all__ = [
    "DownloadError",
    "ChecksumError",
    "download_file",
]
