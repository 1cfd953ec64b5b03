# core/topology/network.py
"""
IP networks and the address configurations of interfaces.

A network is owned by the TopologyStorage and keyed by its network address.
It tracks the host addresses handed out to interfaces so the same address is
never configured twice.
"""
import ipaddress
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from core.exceptions import IdentifierConflict, NotFound, ValidationError

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]


class IPNetwork:
    """An IPv4 or IPv6 network with the set of its addresses in use."""

    def __init__(self, address: str, prefix_length: int):
        if isinstance(prefix_length, bool) or not isinstance(prefix_length, int):
            raise ValidationError(f"Invalid prefix length for network '{address}': {prefix_length!r}")
        try:
            self._network = ipaddress.ip_network(f"{address}/{prefix_length}", strict=True)
        except ValueError as exc:
            raise ValidationError(f"Invalid IP network '{address}/{prefix_length}': {exc}")
        # Insertion-ordered set
        self._in_use: Dict[IPAddress, None] = {}

    @property
    def address(self) -> str:
        return str(self._network.network_address)

    @property
    def prefix_length(self) -> int:
        return self._network.prefixlen

    @property
    def version(self) -> int:
        return self._network.version

    @property
    def addresses_in_use(self) -> List[str]:
        return [str(a) for a in self._in_use]

    def in_range(self, address: IPAddress) -> bool:
        """True if ``address`` is a usable host address of this network."""
        if address.version != self.version or address not in self._network:
            return False
        # Point-to-point and single-host networks have no reserved addresses
        if self._network.num_addresses <= 2:
            return True
        if address == self._network.network_address:
            return False
        if self.version == 4:
            return address != self._network.broadcast_address
        return True

    def parse(self, address: str) -> IPAddress:
        try:
            parsed = ipaddress.ip_address(address)
        except ValueError:
            raise ValidationError(f"Invalid IP address: {address!r}")
        if parsed.version != self.version:
            raise ValidationError(
                f"IP versions of network '{self}' and address '{parsed}' mismatch.")
        if not self.in_range(parsed):
            raise ValidationError(f"Address '{parsed}' is not in the address range of network '{self}'.")
        return parsed

    def reserve(self, address: str) -> IPAddress:
        """Mark ``address`` as in use and return it in parsed form."""
        parsed = self.parse(address)
        if parsed in self._in_use:
            raise IdentifierConflict(f"IP address '{parsed}' is already in use in network '{self}'.")
        self._in_use[parsed] = None
        return parsed

    def release(self, address: IPAddress) -> None:
        self._in_use.pop(address, None)

    def is_in_use(self, address: IPAddress) -> bool:
        return address in self._in_use

    def free_address(self) -> Optional[str]:
        """The lowest host address not in use, or None if the network is full."""
        candidates = self._network if self._network.num_addresses <= 2 else self._network.hosts()
        for candidate in candidates:
            if candidate not in self._in_use and self.in_range(candidate):
                return str(candidate)
        return None

    def to_json(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "subnetMask": self.prefix_length,
            "version": self.version,
        }

    def __str__(self) -> str:
        return str(self._network)

    def __repr__(self) -> str:
        return f"<IPNetwork {self._network} in_use={len(self._in_use)}>"


@dataclass(frozen=True)
class IPConfig:
    """One address configured on an interface, with the network it belongs to."""
    address: IPAddress
    network: IPNetwork

    @property
    def is_link_local(self) -> bool:
        return self.address.is_link_local

    def to_json(self) -> Dict[str, Any]:
        return {
            "address": str(self.address),
            "subnet": self.network.prefix_length,
            "version": self.network.version,
            "network": self.network.to_json(),
            "isLinkLocal": self.is_link_local,
        }


class NetworkRegistry:
    """The networks of one topology, keyed by network address."""

    def __init__(self):
        self._networks: Dict[str, IPNetwork] = {}

    def create(self, address: str, prefix_length: int) -> IPNetwork:
        """
        Return the network with this address, creating it if needed.

        Raises:
            ValidationError if a network with this address but a different
            prefix length already exists, or if the address is malformed.
        """
        candidate = IPNetwork(address, prefix_length)
        existing = self._networks.get(candidate.address)
        if existing is not None:
            if existing.prefix_length != candidate.prefix_length:
                raise ValidationError(
                    f"Network '{candidate.address}' already exists with prefix length "
                    f"{existing.prefix_length}, not {candidate.prefix_length}.")
            return existing
        self._networks[candidate.address] = candidate
        logger.debug("IP network '%s' created", candidate)
        return candidate

    def get(self, address: str) -> IPNetwork:
        try:
            return self._networks[str(ipaddress.ip_address(address))]
        except (KeyError, ValueError):
            raise NotFound(f"No IP network with address '{address}'.")

    def __contains__(self, network: IPNetwork) -> bool:
        return self._networks.get(network.address) is network

    def __iter__(self):
        return iter(list(self._networks.values()))

    def __len__(self) -> int:
        return len(self._networks)

    def clear(self) -> None:
        self._networks.clear()
