"""
Constants for building Single Node OpenShift (SNO) live ISO images.
"""

# Cluster defaults
DEFAULT_BASE_DOMAIN = "cnfcertlab.org"
DEFAULT_ARCHITECTURE = "x86_64"
DEFAULT_CLUSTER_NAME_PREFIX = "greyerof"
DEFAULT_INSTALL_CONFIG = "install-config.yaml"
OUTPUT_DIR_PREFIX = "ocp_"

# Placeholder address of the single node (libvirt user-mode network default)
SNO_NODE_IP = "10.0.2.15"

# Names that must resolve to the node when no DNS server is configured
DNS_SUBDOMAINS = (
    "api",
    "api-int",
    "console-openshift-console.apps",
    "oauth-openshift.apps",
    "canary-openshift-ingress-canary.apps",
)

# OpenShift mirror, versioned client archives live under <mirror>/<version>/
OCP_MIRROR_URL = "https://mirror.openshift.com/pub/openshift-v4/clients/ocp"
OC_ARCHIVE = "openshift-client-linux.tar.gz"
OC_ARCHIVE_LOCAL = "oc.tar.gz"
OC_BINARY = "oc"
INSTALLER_ARCHIVE = "openshift-install-linux.tar.gz"
INSTALLER_BINARY = "openshift-install"

# Release stream API used to resolve X.Y versions to the latest X.Y.Z
RELEASE_STREAM_URL = "https://amd64.ocp.releases.ci.openshift.org/api/v1/releasestreams/accepted"
RELEASE_STREAM_KEY = "4-stable"

# Container images for the external tools
CONTAINER_RUNTIME = "podman"
YQ_IMAGE = "docker.io/mikefarah/yq"
COREOS_INSTALLER_IMAGE = "quay.io/coreos/coreos-installer:release"

# Installer working directory and its outputs (relative to the output dir)
INSTALL_DIR = "ocp"
IGNITION_FILE = "bootstrap-in-place-for-live-iso.ign"
KUBECONFIG_FILE = "auth/kubeconfig"
KUBEADMIN_PASSWORD_FILE = "auth/kubeadmin-password"
LIVE_ISO = "rhcos-live.iso"
FINAL_ISO_TEMPLATE = "rhcos-live-ocp-{version}.iso"

# Serializes coreos-installer runs on a host; they share /dev and /run/udev
EMBED_LOCK_FILE = "/tmp/sno-iso-embed.lock"

# Timeouts (seconds)
COMMAND_TIMEOUT = 1800
DOWNLOAD_TIMEOUT = 60
PATCH_TIMEOUT = 120
REQUEST_TIMEOUT = 30

DOWNLOAD_CHUNK_SIZE = 1024 * 1024
