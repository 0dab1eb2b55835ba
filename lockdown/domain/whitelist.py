"""Whitelist -- IP addresses exempt from attempt logging and blocking."""
import logging
from ipaddress import ip_address, ip_network
from typing import Iterable

logger = logging.getLogger("lockdown.whitelist")


class Whitelist:
    """
    Set membership over configured entries.

    Plain entries match by exact string comparison. Entries written in CIDR
    notation (``10.0.0.0/8``) additionally match any address in the network.
    """

    def __init__(self, entries: Iterable[str] = ()):
        exact = set()
        networks = []
        for raw in entries:
            entry = (raw or "").strip()
            if not entry:
                continue
            exact.add(entry)
            if "/" in entry:
                try:
                    networks.append(ip_network(entry, strict=False))
                except ValueError:
                    logger.warning("Ignoring invalid CIDR in whitelist: %s", entry)
        self._exact = frozenset(exact)
        self._networks = tuple(networks)

    @property
    def entries(self) -> frozenset[str]:
        return self._exact

    def contains(self, ip: str) -> bool:
        if ip in self._exact:
            return True
        if not self._networks:
            return False
        try:
            addr = ip_address(ip)
        except ValueError:
            return False
        # ::ffff:10.0.0.1 should match an IPv4 network
        if addr.version == 6 and addr.ipv4_mapped is not None:
            addr = addr.ipv4_mapped
        return any(addr.version == net.version and addr in net for net in self._networks)

    def __contains__(self, ip: str) -> bool:
        return self.contains(ip)

    def __len__(self) -> int:
        return len(self._exact)
