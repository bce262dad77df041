"""
Patch install-config.yaml for a SNO build.

The base document is piped through the yq tool once per override, each stage
consuming the previous stage's output, exactly as a shell pipeline would. The
base file on disk is never modified.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterable

import yaml

from sno_iso.common import run
from sno_iso.constants import PATCH_TIMEOUT, YQ_IMAGE
from sno_iso.config import BuildRequest, read_input_file
from sno_iso.errors import ConfigPatchError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Override:
    """Set the field at ``path`` (yq syntax, e.g. ".metadata.name") to ``value``."""

    path: str
    value: str

    @property
    def expression(self) -> str:
        # JSON string literals are valid string literals for both yq flavours
        return f"{self.path} = {json.dumps(self.value)}"


class YqPatcher:
    """Runs one yq expression over a YAML document (stdin -> stdout)."""

    def __init__(self, command: list[str], timeout: int = PATCH_TIMEOUT) -> None:
        self.command = command
        self.timeout = timeout

    @classmethod
    def local(cls, timeout: int = PATCH_TIMEOUT) -> "YqPatcher":
        """Use a locally installed yq."""
        return cls(["yq", "--yaml-output"], timeout=timeout)

    @classmethod
    def container(cls, runtime: str, timeout: int = PATCH_TIMEOUT) -> "YqPatcher":
        """Use yq from the docker.io/mikefarah/yq container."""
        return cls([runtime, "run", "-i", "--rm", YQ_IMAGE], timeout=timeout)

    @classmethod
    def for_request(cls, request: BuildRequest) -> "YqPatcher":
        if request.use_local_yq:
            return cls.local()
        return cls.container(request.container_runtime)

    def apply(self, document: str, override: Override) -> str:
        result = run(
            self.command + [override.expression],
            error_cls=ConfigPatchError,
            capture_output=True,
            stdin=document,
            timeout=self.timeout,
        )
        return result.stdout


def compact_pull_secret(raw: str) -> str:
    """Re-serialize the pull secret as single-line JSON."""
    try:
        return json.dumps(json.loads(raw), separators=(",", ":"))
    except json.JSONDecodeError as exc:
        raise ConfigPatchError(f"Pull secret is not valid JSON: {exc}") from exc


def build_overrides(
    base_domain: str,
    cluster_name: str,
    pull_secret: str,
    ssh_key: str,
) -> list[Override]:
    """The four install-config overrides, in the order they are applied."""
    return [
        Override(".baseDomain", base_domain),
        Override(".metadata.name", cluster_name),
        Override(".pullSecret", compact_pull_secret(pull_secret)),
        Override(".sshKey", ssh_key.strip()),
    ]


def patch_configuration(base_doc: str, overrides: Iterable[Override], patcher: YqPatcher) -> str:
    """
    Apply overrides sequentially; the first failing stage aborts the rest.

    Raises:
        ConfigPatchError: If any yq invocation fails
    """
    document = base_doc
    for override in overrides:
        logger.debug(f"  applying {override.path}")
        try:
            document = patcher.apply(document, override)
        except ConfigPatchError as exc:
            raise ConfigPatchError(f"Failed to set {override.path}: {exc}") from exc
    return document


def _lookup(doc: Any, path: str) -> Any:
    for key in path.lstrip(".").split("."):
        if not isinstance(doc, dict):
            return None
        doc = doc.get(key)
    return doc


def verify_configuration(document: str, overrides: Iterable[Override]) -> dict:
    """Parse the patched document and check every override landed."""
    try:
        parsed = yaml.safe_load(document)
    except yaml.YAMLError as exc:
        raise ConfigPatchError(f"Patched install config is not valid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigPatchError("Patched install config is not a YAML mapping")
    for override in overrides:
        if _lookup(parsed, override.path) != override.value:
            raise ConfigPatchError(f"Patched install config has an unexpected value at {override.path}")
    return parsed


def load_base_config(path: Path) -> str:
    """Read the base install config and make sure it is a YAML mapping."""
    text = read_input_file(path, "Base install config", ConfigPatchError)
    try:
        parsed = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigPatchError(f"Base install config '{path}' is not valid YAML: {exc}") from exc
    if not isinstance(parsed, dict):
        raise ConfigPatchError(f"Base install config '{path}' is not a YAML mapping")
    return text


def write_install_config(request: BuildRequest, dest: Path, patcher: YqPatcher | None = None) -> Path:
    """
    Produce the patched install-config.yaml at ``dest``.

    Args:
        request: Validated build request
        dest: Output file (inside the build output directory)
        patcher: yq strategy, chosen from the request if not given

    Returns:
        The written path
    """
    patcher = patcher or YqPatcher.for_request(request)
    if request.use_local_yq:
        logger.info("Using local yq program")
    else:
        logger.info(f"Using yq from container {YQ_IMAGE}")

    overrides = build_overrides(
        base_domain=request.base_domain,
        cluster_name=request.cluster_name,
        pull_secret=read_input_file(request.pull_secret_path, "Pull secret", ConfigPatchError),
        ssh_key=read_input_file(request.ssh_public_key_path, "SSH public key", ConfigPatchError),
    )
    logger.info(f"Updating .baseDomain, .metadata.name, .pullSecret and .sshKey from {request.install_config_path}")
    patched = patch_configuration(load_base_config(request.install_config_path), overrides, patcher)
    verify_configuration(patched, overrides)
    try:
        dest.write_text(patched)
    except OSError as exc:
        raise ConfigPatchError(f"Failed to write {dest}: {exc}") from exc
    return dest
