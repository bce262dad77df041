"""
Locate the RHCOS live ISO for an architecture using the installer's
embedded CoreOS stream metadata.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from sno_iso.common import run
from sno_iso.constants import COMMAND_TIMEOUT
from sno_iso.errors import ImageResolutionError

logger = logging.getLogger(__name__)

ISO_FORMAT = "iso"


@dataclass(frozen=True)
class IsoImage:
    """Download location of a live ISO, with its digest when published."""

    platform: str
    location: str
    sha256: Optional[str] = None


def _mapping(value: Any) -> dict:
    """``value`` if it is a JSON object, else an empty one."""
    return value if isinstance(value, dict) else {}


def find_iso_images(stream: dict, architecture: str) -> list[IsoImage]:
    """Return every ISO artifact listed for ``architecture`` in the stream metadata."""
    arch = _mapping(_mapping(stream.get("architectures")).get(architecture))
    images = []
    for platform, artifact in _mapping(arch.get("artifacts")).items():
        fmt = _mapping(_mapping(_mapping(artifact).get("formats")).get(ISO_FORMAT))
        disk = _mapping(fmt.get("disk"))
        if disk.get("location"):
            images.append(IsoImage(platform, disk["location"], disk.get("sha256")))
    return images


def select_iso_image(stream: dict, architecture: str) -> IsoImage:
    """
    Pick the single ISO for ``architecture``.

    Raises:
        ImageResolutionError: If there is no match or more than one
    """
    images = find_iso_images(stream, architecture)
    if not images:
        known = ", ".join(sorted(_mapping(stream.get("architectures")).keys())) or "none"
        raise ImageResolutionError(
            f"No ISO image found for architecture '{architecture}' (available architectures: {known})"
        )
    if len(images) > 1:
        locations = "\n  ".join(image.location for image in images)
        raise ImageResolutionError(
            f"Ambiguous ISO image for architecture '{architecture}', {len(images)} matches:\n  {locations}"
        )
    return images[0]


def resolve_image_location(
    installer: Path,
    architecture: str,
    timeout: int = COMMAND_TIMEOUT,
) -> IsoImage:
    """Query ``openshift-install coreos print-stream-json`` for the ISO of ``architecture``."""
    result = run(
        [str(installer), "coreos", "print-stream-json"],
        error_cls=ImageResolutionError,
        capture_output=True,
        timeout=timeout,
    )
    try:
        stream = json.loads(result.stdout)
    except json.JSONDecodeError as exc:
        raise ImageResolutionError(f"Could not parse CoreOS stream metadata: {exc}") from exc
    if not isinstance(stream, dict):
        raise ImageResolutionError("CoreOS stream metadata is not a JSON object")

    image = select_iso_image(stream, architecture)
    logger.info(f"Resolved {architecture} ISO: {image.location}")
    return image
