"""
Single Node OpenShift (SNO) live ISO generator.

Downloads the OpenShift client tools, patches install-config.yaml, generates
the single-node ignition config and embeds it in the RHCOS live ISO.
"""

from sno_iso.builder import BuildResult, ImageBuilder, Stage
from sno_iso.config import BuildRequest, validate_inputs

__all__ = ["BuildRequest", "BuildResult", "ImageBuilder", "Stage", "validate_inputs"]
