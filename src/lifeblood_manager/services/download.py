"""Release archive download."""

import logging
from pathlib import Path

import requests

from ..constants import ARCHIVE_URL_TEMPLATE, DOWNLOAD_CONNECT_TIMEOUT, DOWNLOAD_READ_TIMEOUT
from ..errors import DownloadError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1 << 16


def archive_url(branch: str) -> str:
    """Get the release archive URL for a branch."""
    return ARCHIVE_URL_TEMPLATE.format(branch=branch)


def download_archive(
    url: str,
    dest: Path,
    connect_timeout: float = DOWNLOAD_CONNECT_TIMEOUT,
    read_timeout: float = DOWNLOAD_READ_TIMEOUT,
) -> Path:
    """Stream a remote file to dest.

    A partially written file is removed on failure.

    Args:
        url: URL to download
        dest: Target file path
        connect_timeout: Seconds to wait for the connection
        read_timeout: Seconds to wait between received chunks

    Returns:
        Path to the downloaded file

    Raises:
        DownloadError: On any network or transport failure
    """
    logger.info(f"Downloading {url}")
    try:
        with requests.get(url, stream=True, timeout=(connect_timeout, read_timeout)) as resp:
            resp.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in resp.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
    except (requests.RequestException, OSError) as e:
        dest.unlink(missing_ok=True)
        raise DownloadError(f"download of {url} failed: {e}") from e

    logger.info(f"Downloaded {dest.stat().st_size} bytes to {dest}")
    return dest
