"""
PortAllocator - Free TCP ports in the ephemeral range, tracked per group.
"""

import logging
import random
import socket
import threading
from typing import Optional

from networkhub.constants import (
    PORT_BIND_HOST,
    PORT_RANDOM_ATTEMPTS,
    PORT_RANGE_END,
    PORT_RANGE_START,
)
from networkhub.errors import ConfigurationError, PortExhaustedError

logger = logging.getLogger(__name__)


def is_port_available(port: int, host: str = PORT_BIND_HOST) -> bool:
    """Check a port by binding a TCP listener on it and closing it again."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind((host, port))
        except OSError:
            return False
    return True


class PortAllocator:
    """In-memory port allocator.

    Every port handed out is recorded under a caller supplied group ID so a
    whole group can be released at once without touching other groups.
    """

    def __init__(
        self,
        start: int = PORT_RANGE_START,
        end: int = PORT_RANGE_END,
        rng: Optional[random.Random] = None,
    ):
        self.start = start
        self.end = end
        self._rng = rng or random.SystemRandom()
        self._lock = threading.Lock()
        self._in_use: set[int] = set()
        self._by_group: dict[str, list[int]] = {}

    def allocate(self, group_id: str) -> int:
        """Reserve a free port under ``group_id``.

        Raises:
            ConfigurationError: If ``group_id`` is empty.
            PortExhaustedError: If no port in the range can be bound.
        """
        if not group_id:
            raise ConfigurationError("port group ID must not be empty")

        with self._lock:
            port = self._find_free_port()
            self._in_use.add(port)
            self._by_group.setdefault(group_id, []).append(port)

        logger.debug("Allocated port %d for %s", port, group_id)
        return port

    def release_all(self, group_id: str) -> list[int]:
        """Free every port reserved under ``group_id`` and return them."""
        if not group_id:
            raise ConfigurationError("port group ID must not be empty")

        with self._lock:
            ports = self._by_group.pop(group_id, [])
            self._in_use.difference_update(ports)

        if ports:
            logger.debug("Released ports %s for %s", ports, group_id)
        return ports

    def ports_for(self, group_id: str) -> list[int]:
        with self._lock:
            return list(self._by_group.get(group_id, []))

    def _find_free_port(self) -> int:
        for _ in range(PORT_RANDOM_ATTEMPTS):
            port = self._rng.randint(self.start, self.end)
            if port in self._in_use:
                continue
            if is_port_available(port):
                return port

        for port in range(self.start, self.end + 1):
            if port in self._in_use:
                continue
            if is_port_available(port):
                return port

        raise PortExhaustedError(
            f"no free ports available in range {self.start}-{self.end}"
        )


_default_allocator: Optional[PortAllocator] = None
_default_lock = threading.Lock()


def default_port_allocator() -> PortAllocator:
    """Return the process-wide allocator used when none is passed in."""
    global _default_allocator
    with _default_lock:
        if _default_allocator is None:
            _default_allocator = PortAllocator()
        return _default_allocator
