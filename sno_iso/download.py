"""
Artifact downloads: client tool archives from the OpenShift mirror and the
RHCOS live ISO.
"""

from __future__ import annotations

import hashlib
import logging
import stat
import tarfile
from pathlib import Path
from typing import Optional

import requests
import urllib3

from sno_iso.constants import DOWNLOAD_CHUNK_SIZE, DOWNLOAD_TIMEOUT
from sno_iso.errors import DownloadError

logger = logging.getLogger(__name__)


def fetch_artifact(
    url: str,
    dest: Path,
    *,
    verify: bool = False,
    sha256: Optional[str] = None,
    timeout: int = DOWNLOAD_TIMEOUT,
) -> Path:
    """
    Download ``url`` to ``dest`` in a single attempt.

    TLS verification is off by default so that mirrors behind intercepting
    proxies stay reachable (same as ``curl -k``).

    Args:
        url: Source URL
        dest: Destination file, overwritten if present
        verify: Verify the server certificate
        sha256: Expected hex digest of the downloaded file, if known
        timeout: Connect/read timeout in seconds

    Returns:
        The destination path

    Raises:
        DownloadError: On network failure, non-2xx status or digest mismatch
    """
    logger.info(f"Downloading {url}")
    digest = hashlib.sha256()
    try:
        if not verify:
            urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        with requests.get(url, stream=True, verify=verify, timeout=timeout, allow_redirects=True) as response:
            response.raise_for_status()
            with open(dest, "wb") as f:
                for chunk in response.iter_content(chunk_size=DOWNLOAD_CHUNK_SIZE):
                    f.write(chunk)
                    digest.update(chunk)
    except requests.RequestException as exc:
        raise DownloadError(f"Failed to download {url}: {exc}") from exc
    except OSError as exc:
        raise DownloadError(f"Failed to write {dest}: {exc}") from exc

    if sha256 and digest.hexdigest() != sha256.lower():
        raise DownloadError(
            f"Checksum mismatch for {url}: expected {sha256}, got {digest.hexdigest()}"
        )
    logger.info(f"  saved to {dest}")
    return dest


def make_executable(path: Path) -> None:
    """chmod +x"""
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)


def extract_tool(archive: Path, dest_dir: Path, binary: str) -> Path:
    """
    Extract a .tar.gz archive into ``dest_dir`` and mark ``binary`` executable.

    Raises:
        DownloadError: If the archive is unreadable or does not contain ``binary``
    """
    try:
        with tarfile.open(archive, "r:gz") as tar:
            tar.extractall(path=dest_dir, filter="data")
    except (tarfile.TarError, OSError) as exc:
        raise DownloadError(f"Failed to extract {archive}: {exc}") from exc

    binary_path = dest_dir / binary
    if not binary_path.is_file():
        raise DownloadError(f"Archive {archive.name} does not contain '{binary}'")
    make_executable(binary_path)
    return binary_path


def fetch_tool(url: str, archive: Path, binary: str, timeout: int = DOWNLOAD_TIMEOUT) -> Path:
    """Download a client tool archive and extract its binary next to it."""
    fetch_artifact(url, archive, timeout=timeout)
    return extract_tool(archive, archive.parent, binary)
