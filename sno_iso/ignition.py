"""
Ignition generation (openshift-install) and embedding (coreos-installer).
"""

from __future__ import annotations

import contextlib
import fcntl
import logging
import shutil
from pathlib import Path
from typing import Iterator

from sno_iso.common import run
from sno_iso.constants import (
    COMMAND_TIMEOUT,
    COREOS_INSTALLER_IMAGE,
    DEFAULT_INSTALL_CONFIG,
    EMBED_LOCK_FILE,
    IGNITION_FILE,
)
from sno_iso.errors import EmbedError, IgnitionGenerationError

logger = logging.getLogger(__name__)


def generate_ignition(
    installer: Path,
    install_config: Path,
    install_dir: Path,
    timeout: int = COMMAND_TIMEOUT,
) -> Path:
    """
    Create the single-node ignition config.

    openshift-install consumes (and deletes) the install-config.yaml in its
    working directory, so a copy is placed in ``install_dir`` first.

    Returns:
        Path of bootstrap-in-place-for-live-iso.ign

    Raises:
        IgnitionGenerationError: On installer failure or missing output
    """
    try:
        install_dir.mkdir(exist_ok=True)
        shutil.copy(install_config, install_dir / DEFAULT_INSTALL_CONFIG)
    except OSError as exc:
        raise IgnitionGenerationError(f"Failed to prepare {install_dir}: {exc}") from exc

    logger.info("Creating ignition config")
    run(
        [str(installer), f"--dir={install_dir}", "create", "single-node-ignition-config"],
        error_cls=IgnitionGenerationError,
        timeout=timeout,
    )

    ignition = install_dir / IGNITION_FILE
    if not ignition.is_file():
        raise IgnitionGenerationError(f"openshift-install did not produce {ignition}")
    logger.debug(f"Installer output: {sorted(p.name for p in install_dir.iterdir())}")
    return ignition


@contextlib.contextmanager
def host_lock(lockfile_path: str | Path = EMBED_LOCK_FILE) -> Iterator[None]:
    """Exclusive, blocking, host-wide lock held for the duration of the block."""
    with open(lockfile_path, "a") as fh:
        fcntl.lockf(fh, fcntl.LOCK_EX)
        try:
            yield
        finally:
            fcntl.lockf(fh, fcntl.LOCK_UN)


class CoreosInstaller:
    """
    Embeds ignition configs into live ISOs with the coreos-installer container.

    The container runs privileged with the host's /dev and /run/udev mounted,
    so the host running the build must allow privileged containers. Runs on
    the same host are serialized through a lock file.
    """

    def __init__(
        self,
        runtime: str = "podman",
        image: str = COREOS_INSTALLER_IMAGE,
        timeout: int = COMMAND_TIMEOUT,
        lockfile_path: str | Path = EMBED_LOCK_FILE,
    ) -> None:
        self.runtime = runtime
        self.image = image
        self.timeout = timeout
        self.lockfile_path = lockfile_path

    def command(self, workdir: Path, ignition: str, iso: str) -> list[str]:
        return [
            self.runtime, "run", "--privileged", "--pull", "always", "--rm",
            "-v", "/dev:/dev",
            "-v", "/run/udev:/run/udev",
            "-v", f"{workdir}:/data",
            "-w", "/data",
            self.image,
            "iso", "ignition", "embed", "-f", "-i", ignition, iso,
        ]

    def embed_ignition(self, ignition_file: Path, iso_file: Path) -> None:
        """
        Rewrite ``iso_file`` in place with ``ignition_file`` embedded.

        Both files must live under the ISO's directory, which is mounted
        into the container as /data.

        Raises:
            EmbedError: On coreos-installer failure
        """
        workdir = iso_file.parent.resolve()
        try:
            ignition_rel = ignition_file.resolve().relative_to(workdir)
        except ValueError as exc:
            raise EmbedError(f"Ignition file {ignition_file} is not under {workdir}") from exc

        logger.info("Creating final ISO image")
        try:
            with host_lock(self.lockfile_path):
                run(
                    self.command(workdir, ignition_rel.as_posix(), iso_file.name),
                    error_cls=EmbedError,
                    timeout=self.timeout,
                )
        except OSError as exc:
            raise EmbedError(f"Failed to acquire embed lock {self.lockfile_path}: {exc}") from exc
