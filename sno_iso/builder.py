"""
Build a Single Node OpenShift (SNO) live ISO.

Stages run strictly in order; the first failure aborts the build and leaves
the output directory on disk for inspection. It must be removed before the
same cluster name can be built again.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from sno_iso.config import BuildRequest, output_dir_name
from sno_iso.constants import (
    DEFAULT_INSTALL_CONFIG,
    FINAL_ISO_TEMPLATE,
    INSTALL_DIR,
    INSTALLER_ARCHIVE,
    INSTALLER_BINARY,
    KUBEADMIN_PASSWORD_FILE,
    KUBECONFIG_FILE,
    LIVE_ISO,
    OC_ARCHIVE,
    OC_ARCHIVE_LOCAL,
    OC_BINARY,
)
from sno_iso.dns import DnsEntry, compute_dns_entries, format_hosts_line
from sno_iso.download import fetch_artifact, fetch_tool
from sno_iso.errors import BuildError, EmbedError, OutputAlreadyExistsError
from sno_iso.ignition import CoreosInstaller, generate_ignition
from sno_iso.images import IsoImage, resolve_image_location
from sno_iso.install_config import YqPatcher, write_install_config

logger = logging.getLogger(__name__)


class Stage(enum.Enum):
    VALIDATING = "validating"
    DIRECTORY_PREPARED = "directory-prepared"
    CONFIG_PATCHED = "config-patched"
    TOOLS_FETCHED = "tools-fetched"
    IMAGE_DOWNLOADED = "image-downloaded"
    IGNITION_GENERATED = "ignition-generated"
    IMAGE_EMBEDDED = "image-embedded"
    DONE = "done"
    ABORTED = "aborted"


@dataclass
class BuildResult:
    """Artifacts of a finished build."""

    output_dir: Path
    iso: Path
    kubeconfig: Path
    kubeadmin_password: Path
    dns_entries: list[DnsEntry] = field(default_factory=list)


def prepare_output_directory(output_root: Path, cluster_name: str) -> Path:
    """
    Create ocp_<cluster_name> under ``output_root``.

    Raises:
        OutputAlreadyExistsError: If the directory is already there
        BuildError: If the directory cannot be created
    """
    output_dir = output_root / output_dir_name(cluster_name)
    if output_dir.exists():
        raise OutputAlreadyExistsError(f"Folder {output_dir} already exists. Please remove/rename it.")
    logger.info(f"Creating output folder {output_dir}")
    try:
        output_dir.mkdir(parents=True)
    except FileExistsError as exc:
        raise OutputAlreadyExistsError(f"Folder {output_dir} already exists. Please remove/rename it.") from exc
    except OSError as exc:
        raise BuildError(f"Failed to create folder {output_dir}: {exc}", stage="prepare-output") from exc
    return output_dir.resolve()


class ImageBuilder:
    """Runs the ISO build pipeline for one BuildRequest."""

    def __init__(
        self,
        request: BuildRequest,
        patcher: Optional[YqPatcher] = None,
        coreos_installer: Optional[CoreosInstaller] = None,
    ) -> None:
        self.request = request
        self.patcher = patcher or YqPatcher.for_request(request)
        self.coreos_installer = coreos_installer or CoreosInstaller(
            runtime=request.container_runtime,
            timeout=request.command_timeout,
        )
        self.stage = Stage.VALIDATING
        self.output_dir: Optional[Path] = None

    def _advance(self, stage: Stage) -> None:
        logger.debug(f"Stage: {self.stage.value} -> {stage.value}")
        self.stage = stage

    def build(self) -> BuildResult:
        """
        Run every stage in order.

        Raises:
            BuildError: The first stage failure; ``self.stage`` is ABORTED
        """
        try:
            return self._build()
        except BuildError as exc:
            failed = self.stage
            self._advance(Stage.ABORTED)
            logger.error(f"Build aborted after stage '{failed.value}' ({exc.stage}): {exc}")
            if self.output_dir is not None:
                logger.error(f"Partial output left in {self.output_dir}; remove it before retrying.")
            raise

    def _build(self) -> BuildResult:
        request = self.request
        logger.info(
            f"Preparing iso for OCP version {request.ocp_version}, cluster name "
            f"{request.cluster_name} in folder {request.output_dir}."
        )

        output_dir = prepare_output_directory(request.output_root, request.cluster_name)
        self.output_dir = output_dir
        self._advance(Stage.DIRECTORY_PREPARED)

        install_config = write_install_config(request, output_dir / DEFAULT_INSTALL_CONFIG, self.patcher)
        self._advance(Stage.CONFIG_PATCHED)

        installer = self.fetch_tools(output_dir)
        self._advance(Stage.TOOLS_FETCHED)

        iso = self.download_image(installer, output_dir)
        self._advance(Stage.IMAGE_DOWNLOADED)

        install_dir = output_dir / INSTALL_DIR
        ignition = generate_ignition(installer, install_config, install_dir, timeout=request.command_timeout)
        self._advance(Stage.IGNITION_GENERATED)

        final_iso = self.embed(ignition, iso)
        self._advance(Stage.IMAGE_EMBEDDED)

        result = BuildResult(
            output_dir=output_dir,
            iso=final_iso,
            kubeconfig=install_dir / KUBECONFIG_FILE,
            kubeadmin_password=install_dir / KUBEADMIN_PASSWORD_FILE,
            dns_entries=compute_dns_entries(request.cluster_name, request.base_domain),
        )
        self._advance(Stage.DONE)
        return result

    def fetch_tools(self, output_dir: Path) -> Path:
        """Download and unpack oc and openshift-install. Returns the installer path."""
        request = self.request
        fetch_tool(
            request.tool_url(OC_ARCHIVE),
            output_dir / OC_ARCHIVE_LOCAL,
            OC_BINARY,
            timeout=request.download_timeout,
        )
        return fetch_tool(
            request.tool_url(INSTALLER_ARCHIVE),
            output_dir / INSTALLER_ARCHIVE,
            INSTALLER_BINARY,
            timeout=request.download_timeout,
        )

    def download_image(self, installer: Path, output_dir: Path) -> Path:
        image: IsoImage = resolve_image_location(
            installer, self.request.architecture, timeout=self.request.command_timeout
        )
        return fetch_artifact(
            image.location,
            output_dir / LIVE_ISO,
            verify=True,
            sha256=image.sha256,
            timeout=self.request.download_timeout,
        )

    def embed(self, ignition: Path, iso: Path) -> Path:
        """Embed the ignition and rename the ISO after the OCP version."""
        self.coreos_installer.embed_ignition(ignition, iso)
        final_iso = iso.with_name(FINAL_ISO_TEMPLATE.format(version=self.request.ocp_version))
        try:
            iso.rename(final_iso)
        except OSError as exc:
            raise EmbedError(f"Failed to rename {iso} to {final_iso}: {exc}") from exc
        return final_iso


def print_summary(request: BuildRequest, result: BuildResult) -> None:
    """Print the DNS entries and artifact locations of a finished build."""
    print("=" * 60)
    print("List of DNS entries for /etc/hosts (not needed if a DNS server was pre-configured):")
    print(format_hosts_line(result.dns_entries))
    print("=" * 60)
    print(f"Openshift {request.ocp_version} files created:")
    print(f"  ISO              : {result.iso}")
    print(f"  kubeconfig       : {result.kubeconfig}")
    print(f"  kubeadmin passwd : {result.kubeadmin_password}")
    print("=" * 60)
