"""Exceptions raised while building a SNO live ISO."""

from typing import Optional


class BuildError(RuntimeError):
    """Base error for ISO build failures. ``stage`` names the failing step."""

    stage = "build"

    def __init__(self, message: str, stage: Optional[str] = None) -> None:
        super().__init__(message)
        if stage is not None:
            self.stage = stage


class MissingInputError(BuildError):
    """A required input (version, pull secret, ssh key) was not given."""

    stage = "validate"


class InputFileNotFoundError(BuildError, FileNotFoundError):
    """A referenced input file does not exist."""

    stage = "validate"


class VersionResolutionError(BuildError):
    """The OpenShift version could not be resolved to a full X.Y.Z release."""

    stage = "resolve-version"


class OutputAlreadyExistsError(BuildError):
    """The output directory is left over from a previous build."""

    stage = "prepare-output"


class ConfigPatchError(BuildError):
    """Patching install-config.yaml failed."""

    stage = "patch-config"


class DownloadError(BuildError):
    """An HTTP download or archive extraction failed."""

    stage = "download"


class ImageResolutionError(BuildError):
    """No unique RHCOS ISO location was found for the architecture."""

    stage = "resolve-image"


class IgnitionGenerationError(BuildError):
    """openshift-install failed to create the single-node ignition config."""

    stage = "generate-ignition"


class EmbedError(BuildError):
    """coreos-installer failed to embed the ignition config in the ISO."""

    stage = "embed-ignition"
