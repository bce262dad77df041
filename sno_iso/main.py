#!/usr/bin/env python3
"""
Create a bootable live ISO for a Single Node OpenShift (SNO) cluster.

Downloads the "oc" and "openshift-install" tools for the requested version,
patches install-config.yaml (base domain, cluster name, pull secret, ssh key),
generates the single-node ignition config and embeds it in the RHCOS live ISO.
All artifacts go to a new folder named ocp_<cluster name>.

Usage:
  # Output folder will be "ocp_greyerof-4-14-3"
  OCP_VERSION=4.14.3 PULL_SECRET=~/ps.json SSH_PUB_KEY=~/.ssh/id_rsa.pub sno-iso-generator

  # Custom cluster name, locally installed yq
  sno-iso-generator --version 4.15.1 --cluster-name mysnocluster --local-yq \\
      --pull-secret ~/ps.json --ssh-pub-key ~/.ssh/id_rsa.pub
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import os

from sno_iso.builder import ImageBuilder, print_summary
from sno_iso.config import BuildRequest, default_cluster_name, print_config, validate_inputs
from sno_iso.constants import (
    COMMAND_TIMEOUT,
    CONTAINER_RUNTIME,
    DEFAULT_ARCHITECTURE,
    DEFAULT_BASE_DOMAIN,
    DEFAULT_INSTALL_CONFIG,
    INSTALLER_ARCHIVE,
    OC_ARCHIVE,
)
from sno_iso.dns import compute_dns_entries, format_hosts_line
from sno_iso.errors import BuildError
from sno_iso.openshift import is_minor_version, resolve_ocp_version
from sno_iso.utils import setup_logging

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="sno-iso-generator",
        description="Create a live ISO image for a Single Node OpenShift (SNO) cluster.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --version 4.14.3 --pull-secret ~/ps.json --ssh-pub-key ~/.ssh/id_rsa.pub
  %(prog)s --version 4.15 --cluster-name mysno --local-yq --dry-run

Environment variables:
  OCP_VERSION       - OpenShift version, X.Y.Z or X.Y (required)
  PULL_SECRET       - Path to pull secret file (required)
  SSH_PUB_KEY       - Path to ssh public key (required)
  CLUSTER_NAME      - Cluster name (default: greyerof-<version with dashes>)
  ARCH              - ISO architecture (default: x86_64)
  LOCAL_YQ          - If set, use the locally installed yq instead of its container
  BASE_DOMAIN       - Cluster base domain (default: cnfcertlab.org)
  INSTALL_CONFIG    - Base install-config.yaml (default: ./install-config.yaml)
  OUTPUT_ROOT       - Where the ocp_<cluster name> folder is created (default: .)
  CONTAINER_RUNTIME - Container runtime for yq and coreos-installer (default: podman)
  COMMAND_TIMEOUT   - Timeout in seconds for each external command (default: 1800)
  LOG_LEVEL         - Logging level (default: INFO)
""",
    )
    parser.add_argument(
        "--version",
        dest="ocp_version",
        default=os.environ.get("OCP_VERSION"),
        help="OpenShift version (e.g. 4.14.3, or 4.14 for the latest patch). (env: OCP_VERSION)",
    )
    parser.add_argument(
        "--pull-secret",
        dest="pull_secret",
        default=os.environ.get("PULL_SECRET"),
        help="Path to pull secret file. (env: PULL_SECRET)",
    )
    parser.add_argument(
        "--ssh-pub-key",
        dest="ssh_pub_key",
        default=os.environ.get("SSH_PUB_KEY"),
        help="Path to ssh public key added to the node's 'core' user. (env: SSH_PUB_KEY)",
    )
    parser.add_argument(
        "--cluster-name",
        dest="cluster_name",
        default=os.environ.get("CLUSTER_NAME"),
        help="Cluster name (default: greyerof-<version>). (env: CLUSTER_NAME)",
    )
    parser.add_argument(
        "--arch",
        dest="architecture",
        default=os.environ.get("ARCH", DEFAULT_ARCHITECTURE),
        help=f"ISO architecture (default: {DEFAULT_ARCHITECTURE}). (env: ARCH)",
    )
    parser.add_argument(
        "--local-yq",
        action="store_true",
        default="LOCAL_YQ" in os.environ,
        help="Use the locally installed yq instead of the container. (env: LOCAL_YQ)",
    )
    parser.add_argument(
        "--base-domain",
        default=os.environ.get("BASE_DOMAIN", DEFAULT_BASE_DOMAIN),
        help=f"Cluster base domain (default: {DEFAULT_BASE_DOMAIN}). (env: BASE_DOMAIN)",
    )
    parser.add_argument(
        "--install-config",
        default=os.environ.get("INSTALL_CONFIG", DEFAULT_INSTALL_CONFIG),
        help="Base install-config.yaml, never modified. (env: INSTALL_CONFIG)",
    )
    parser.add_argument(
        "--output-root",
        default=os.environ.get("OUTPUT_ROOT", "."),
        help="Directory where the output folder is created. (env: OUTPUT_ROOT)",
    )
    parser.add_argument(
        "--container-runtime",
        default=os.environ.get("CONTAINER_RUNTIME", CONTAINER_RUNTIME),
        help=f"Container runtime (default: {CONTAINER_RUNTIME}). (env: CONTAINER_RUNTIME)",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=os.environ.get("COMMAND_TIMEOUT", str(COMMAND_TIMEOUT)),
        help=f"Timeout in seconds for each external command (default: {COMMAND_TIMEOUT}). (env: COMMAND_TIMEOUT)",
    )
    parser.add_argument(
        "--no-resolve-version",
        action="store_true",
        help="Do not resolve X.Y versions to the latest X.Y.Z release.",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Validate inputs and show the build plan without creating anything. "
        "An X.Y version is still resolved over the network unless --no-resolve-version is given.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    return parser.parse_args(argv)


def build_request(args: argparse.Namespace) -> BuildRequest:
    """Validate the parsed arguments into a BuildRequest, resolving X.Y versions."""
    request = validate_inputs(
        args.ocp_version,
        args.pull_secret,
        args.ssh_pub_key,
        cluster_name=args.cluster_name,
        architecture=args.architecture,
        use_local_yq=args.local_yq,
        base_domain=args.base_domain,
        install_config_path=args.install_config,
        output_root=args.output_root,
        container_runtime=args.container_runtime,
        command_timeout=args.timeout,
    )
    if args.no_resolve_version or not is_minor_version(request.ocp_version):
        return request

    version = resolve_ocp_version(request.ocp_version)
    return dataclasses.replace(
        request,
        ocp_version=version,
        cluster_name=(args.cluster_name or "").strip() or default_cluster_name(version),
    )


def print_plan(request: BuildRequest) -> None:
    print("\nDry run requested; nothing will be created. Planned downloads:")
    print(f"  {request.tool_url(OC_ARCHIVE)}")
    print(f"  {request.tool_url(INSTALLER_ARCHIVE)}")
    print(f"  RHCOS {request.architecture} live ISO (resolved by openshift-install)")
    print("DNS entries for /etc/hosts:")
    print(f"  {format_hosts_line(compute_dns_entries(request.cluster_name, request.base_domain))}")


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        request = build_request(args)
        print_config(request)
        if args.dry_run:
            print_plan(request)
            return 0
        result = ImageBuilder(request).build()
    except BuildError as exc:
        logger.error(f"[{exc.stage}] {exc}")
        return 1

    print_summary(request, result)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
