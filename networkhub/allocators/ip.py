"""
IpAllocator - Sequential IPv4 addresses inside one /24 subnet.
"""

import ipaddress
import random
from typing import Optional

from networkhub.constants import IP_FIRST_HOST, IP_LAST_HOST, PRIVATE_IP_PREFIX
from networkhub.errors import ConfigurationError, IpExhaustedError


class IpAllocator:
    """Hands out ``a.b.c.2`` .. ``a.b.c.253`` to node IDs.

    The counter only moves forward: releasing a node drops its mapping but
    its address is not handed out again for the allocator's lifetime.
    """

    def __init__(self, subnet: str):
        try:
            network = ipaddress.IPv4Network(subnet)
        except ValueError as e:
            raise ConfigurationError(f"invalid subnet {subnet!r}: {e}") from e
        if network.prefixlen != 24:
            raise ConfigurationError(f"subnet {subnet!r} must be a /24")

        self._base = str(network.network_address).rsplit(".", 1)[0]
        self._next_host = IP_FIRST_HOST
        self._assigned: dict[str, str] = {}

    @classmethod
    def random(cls, rng: Optional[random.Random] = None) -> "IpAllocator":
        """Create an allocator on a random ``10.b.c.0/24`` subnet."""
        rng = rng or random.SystemRandom()
        return cls(f"{PRIVATE_IP_PREFIX}.{rng.randrange(256)}.{rng.randrange(256)}.0/24")

    @property
    def subnet(self) -> str:
        return f"{self._base}.0/24"

    def allocate(self, node_id: str) -> str:
        """Return the address for ``node_id``, assigning the next free one if needed.

        Raises:
            IpExhaustedError: If every host address in the subnet was handed out.
        """
        existing = self._assigned.get(node_id)
        if existing:
            return existing

        if self._next_host > IP_LAST_HOST:
            raise IpExhaustedError(
                f"no more available IP addresses in {self.subnet}", node_id=node_id
            )
        ip = f"{self._base}.{self._next_host}"
        self._next_host += 1
        self._assigned[node_id] = ip
        return ip

    def get(self, node_id: str) -> Optional[str]:
        return self._assigned.get(node_id)

    def release(self, node_id: str) -> Optional[str]:
        return self._assigned.pop(node_id, None)

    def assigned(self) -> dict[str, str]:
        return dict(self._assigned)
