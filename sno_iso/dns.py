"""
DNS names a SNO cluster needs when no DNS server is configured.
"""

from __future__ import annotations

from dataclasses import dataclass

from sno_iso.constants import DNS_SUBDOMAINS, SNO_NODE_IP


@dataclass(frozen=True)
class DnsEntry:
    hostname: str
    ip: str


def compute_dns_entries(cluster_name: str, base_domain: str, ip: str = SNO_NODE_IP) -> list[DnsEntry]:
    """
    Return the cluster FQDN followed by the api and ingress names under it,
    all pointing at the single node.
    """
    fqdn = f"{cluster_name}.{base_domain}"
    return [DnsEntry(fqdn, ip)] + [DnsEntry(f"{sub}.{fqdn}", ip) for sub in DNS_SUBDOMAINS]


def format_hosts_line(entries: list[DnsEntry]) -> str:
    """Render entries sharing one IP as a single /etc/hosts line."""
    if not entries:
        return ""
    return " ".join([entries[0].ip] + [entry.hostname for entry in entries])
