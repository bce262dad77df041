"""
OpenShift release lookups.
"""

from __future__ import annotations

import logging
import re

import requests
from semver import Version

from sno_iso.constants import RELEASE_STREAM_KEY, RELEASE_STREAM_URL, REQUEST_TIMEOUT
from sno_iso.errors import VersionResolutionError

logger = logging.getLogger(__name__)

MINOR_VERSION_RE = re.compile(r"^\d+\.\d+$")


def is_minor_version(version: str) -> bool:
    """True for X.Y versions (e.g. "4.14"), which need resolving to X.Y.Z."""
    return bool(MINOR_VERSION_RE.match(version.strip()))


def get_latest_ocp_version(version_tag: str, timeout: int = REQUEST_TIMEOUT) -> str:
    """
    Given a major.minor version (e.g. '4.14'), query the OpenShift release
    stream API to find the latest accepted stable version (e.g. '4.14.3').

    Raises:
        ValueError: If version_tag format is invalid.
        VersionResolutionError: If a network error occurs or no version is found.
    """
    if not is_minor_version(version_tag):
        raise ValueError(f"Invalid version tag format: '{version_tag}'. Expected format: X.Y")

    logger.info(f"Checking for latest OCP version for {version_tag} in {RELEASE_STREAM_KEY} stream...")
    try:
        response = requests.get(RELEASE_STREAM_URL, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except (requests.RequestException, ValueError) as exc:
        raise VersionResolutionError(f"Failed to query {RELEASE_STREAM_URL}: {exc}") from exc

    if RELEASE_STREAM_KEY not in data:
        raise VersionResolutionError(f"Stream {RELEASE_STREAM_KEY} not found in response.")

    # Strict X.Y.Z only, pre-releases contain '-'
    prefix = version_tag + "."
    candidates = [
        v for v in data.get(RELEASE_STREAM_KEY, [])
        if v.startswith(prefix) and "-" not in v and Version.is_valid(v)
    ]
    if not candidates:
        raise VersionResolutionError(f"No stable versions found for {version_tag} in {RELEASE_STREAM_KEY} stream")

    return str(max(map(Version.parse, candidates)))


def resolve_ocp_version(version: str, timeout: int = REQUEST_TIMEOUT) -> str:
    """
    If version is in X.Y format, return the latest X.Y.Z release.
    X.Y.Z versions are returned as-is.
    """
    if not is_minor_version(version):
        return version
    latest = get_latest_ocp_version(version, timeout=timeout)
    logger.info(f"  Resolved {version} -> {latest}")
    return latest
