"""
NetworkManager - Docker bridge networks for thor networks.
"""

import logging

import docker
from docker.types import IPAMConfig, IPAMPool

from networkhub.errors import ExecutionError
from networkhub.utils import console

logger = logging.getLogger(__name__)


class NetworkManager:
    """Creates and removes the bridge network a thor network's containers share."""

    def __init__(self, client: docker.DockerClient):
        self.client = client

    def get_network(self, network_name: str):
        """Get a Docker network by name, or None if it does not exist."""
        matches = self.client.networks.list(names=[network_name])
        for network in matches:
            if network.name == network_name:
                return network
        return None

    def recreate(self, network_name: str, subnet: str):
        """Create ``network_name`` on ``subnet``, removing a stale one first.

        Raises:
            ExecutionError: If the network cannot be removed or created.
        """
        try:
            existing = self.get_network(network_name)
            if existing is not None:
                console.print(
                    f"[yellow]Network {network_name} already exists, recreating[/yellow]"
                )
                existing.remove()

            ipam = IPAMConfig(pool_configs=[IPAMPool(subnet=subnet)])
            network = self.client.networks.create(
                network_name, driver="bridge", ipam=ipam
            )
        except docker.errors.APIError as e:
            raise ExecutionError(
                f"could not create Docker network {network_name}: {e}",
                network_id=network_name,
            ) from e

        console.print(f"[green]✓ Created network: {network_name} ({subnet})[/green]")
        return network

    def remove(self, network_name: str) -> bool:
        """Remove ``network_name``; failures are logged, not raised."""
        try:
            self.client.networks.get(network_name).remove()
        except docker.errors.NotFound:
            return False
        except docker.errors.APIError as e:
            console.print(
                f"[yellow]⚠️  Warning: Could not remove network {network_name}: {str(e)}[/yellow]"
            )
            return False

        logger.info("Cleaned up Docker network %s", network_name)
        return True
