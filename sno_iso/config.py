"""
SNO ISO build configuration.

The build request is assembled once from CLI arguments and environment
variables, validated, and then passed unchanged through every build stage.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Type

from sno_iso.constants import (
    COMMAND_TIMEOUT,
    CONTAINER_RUNTIME,
    DEFAULT_ARCHITECTURE,
    DEFAULT_BASE_DOMAIN,
    DEFAULT_CLUSTER_NAME_PREFIX,
    DEFAULT_INSTALL_CONFIG,
    DOWNLOAD_TIMEOUT,
    OCP_MIRROR_URL,
    OUTPUT_DIR_PREFIX,
)
from sno_iso.errors import BuildError, ConfigPatchError, InputFileNotFoundError, MissingInputError

VERSION_RE = re.compile(r"^\d+\.\d+(\.\d+)?$")


@dataclass(frozen=True)
class BuildRequest:
    """Everything needed to build one SNO live ISO."""

    ocp_version: str
    pull_secret_path: Path
    ssh_public_key_path: Path
    cluster_name: str
    architecture: str = DEFAULT_ARCHITECTURE
    use_local_yq: bool = False
    base_domain: str = DEFAULT_BASE_DOMAIN
    install_config_path: Path = Path(DEFAULT_INSTALL_CONFIG)
    output_root: Path = Path(".")
    container_runtime: str = CONTAINER_RUNTIME
    mirror_url: str = OCP_MIRROR_URL
    command_timeout: int = COMMAND_TIMEOUT
    download_timeout: int = DOWNLOAD_TIMEOUT

    @property
    def output_dir(self) -> Path:
        return self.output_root / output_dir_name(self.cluster_name)

    @property
    def cluster_fqdn(self) -> str:
        return f"{self.cluster_name}.{self.base_domain}"

    def tool_url(self, archive: str) -> str:
        """Mirror URL of a versioned client archive."""
        return f"{self.mirror_url.rstrip('/')}/{self.ocp_version}/{archive}"


def default_cluster_name(ocp_version: str) -> str:
    """
    Derive the cluster name used when none is given.

    Example: "4.14.3" -> "greyerof-4-14-3"
    """
    return f"{DEFAULT_CLUSTER_NAME_PREFIX}-{ocp_version.replace('.', '-')}"


def output_dir_name(cluster_name: str) -> str:
    """Name of the per-cluster output directory, e.g. "ocp_greyerof-4-14-3"."""
    return f"{OUTPUT_DIR_PREFIX}{cluster_name}"


def _expand_path(path: str | Path) -> Path:
    return Path(path).expanduser()


def read_input_file(path: Path, label: str, error_cls: Type[BuildError] = MissingInputError) -> str:
    """Read a UTF-8 input file, reporting unreadable files as ``error_cls``."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise error_cls(f"{label} file '{path}' could not be read: {exc}") from exc


def validate_inputs(
    ocp_version: str | None,
    pull_secret_path: str | Path | None,
    ssh_public_key_path: str | Path | None,
    cluster_name: str | None = None,
    **options,
) -> BuildRequest:
    """
    Validate raw inputs and build an immutable BuildRequest.

    Nothing is created or downloaded here; a failure leaves no trace.

    Args:
        ocp_version: OpenShift version (e.g. "4.14.3")
        pull_secret_path: Path to the pull secret JSON file
        ssh_public_key_path: Path to the SSH public key
        cluster_name: Optional cluster name, derived from the version if empty
        **options: Any other BuildRequest field (architecture, base_domain, ...)

    Returns:
        The validated BuildRequest

    Raises:
        MissingInputError: A required input is empty, malformed or unreadable
        InputFileNotFoundError: A referenced file does not exist
        ConfigPatchError: The pull secret is not valid JSON
    """
    missing = [
        name
        for name, value in (
            ("version", ocp_version),
            ("pull secret path", pull_secret_path),
            ("ssh public key path", ssh_public_key_path),
        )
        if not value or not str(value).strip()
    ]
    if missing:
        raise MissingInputError(f"Missing required input(s): {', '.join(missing)}")

    ocp_version = ocp_version.strip()
    if not VERSION_RE.match(ocp_version):
        raise MissingInputError(
            f"Invalid OpenShift version '{ocp_version}'. Expected X.Y or X.Y.Z (e.g. 4.14.3)"
        )

    pull_secret = _expand_path(pull_secret_path)
    ssh_key = _expand_path(ssh_public_key_path)
    install_config = _expand_path(options.pop("install_config_path", DEFAULT_INSTALL_CONFIG))
    for label, path in (
        ("Pull secret", pull_secret),
        ("SSH public key", ssh_key),
        ("Base install config", install_config),
    ):
        if not path.is_file():
            raise InputFileNotFoundError(f"{label} file '{path}' not found.")

    pull_secret_text = read_input_file(pull_secret, "Pull secret")
    read_input_file(ssh_key, "SSH public key")
    read_input_file(install_config, "Base install config")
    try:
        json.loads(pull_secret_text)
    except json.JSONDecodeError as exc:
        raise ConfigPatchError(
            f"Pull secret file '{pull_secret}' is not valid JSON: {exc}\n"
            "Download it from https://console.redhat.com/openshift/install/pull-secret"
        ) from exc

    if "output_root" in options:
        options["output_root"] = _expand_path(options["output_root"])

    return BuildRequest(
        ocp_version=ocp_version,
        pull_secret_path=pull_secret,
        ssh_public_key_path=ssh_key,
        cluster_name=(cluster_name or "").strip() or default_cluster_name(ocp_version),
        install_config_path=install_config,
        **options,
    )


def print_config(request: BuildRequest) -> None:
    """Print the build configuration in a readable format."""
    print("=" * 60)
    print("SNO ISO Build Configuration")
    print("=" * 60)
    print(f"  OCP version     : {request.ocp_version}")
    print(f"  Cluster name    : {request.cluster_name}")
    print(f"  Base domain     : {request.base_domain}")
    print(f"  Architecture    : {request.architecture}")
    print(f"  Install config  : {request.install_config_path}")
    print(f"  Pull secret     : {request.pull_secret_path}")
    print(f"  SSH public key  : {request.ssh_public_key_path}")
    print(f"  Output folder   : {request.output_dir}")
    print(f"  yq              : {'local' if request.use_local_yq else 'container'}")
    print("=" * 60)
