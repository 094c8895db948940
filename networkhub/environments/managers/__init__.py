"""
Managers - Substrate specific node handling used by the Launcher.
"""

from typing import Optional

from networkhub.allocators.ports import PortAllocator
from networkhub.constants import DOCKER, LOCAL
from networkhub.environments.managers.base import BaseManager
from networkhub.environments.managers.docker import DockerManager
from networkhub.environments.managers.local import LocalManager
from networkhub.errors import ConfigurationError

MANAGERS = {
    LOCAL: LocalManager,
    DOCKER: DockerManager,
}


def create_manager(
    environment: str, port_allocator: Optional[PortAllocator] = None
) -> BaseManager:
    """Create the manager for an environment tag.

    Raises:
        ConfigurationError: If the environment is not supported.
    """
    manager_class = MANAGERS.get(environment)
    if manager_class is None:
        raise ConfigurationError(f"unsupported environment: {environment!r}")
    return manager_class(port_allocator=port_allocator)


__all__ = [
    "BaseManager",
    "DockerManager",
    "LocalManager",
    "MANAGERS",
    "create_manager",
]
