"""
DockerNode - Runs one thor node inside a container.
"""

import logging
import shlex
from dataclasses import dataclass
from typing import Optional, Sequence

import docker

from networkhub.constants import (
    CONTAINER_STOP_TIMEOUT,
    DOCKER_HOME_DIR,
    DOCKER_HOSTNAME_PREFIX,
    DOCKER_KILLED_EXIT_CODE,
    GENESIS_FILE,
    MASTER_KEY_FILE,
    P2P_KEY_FILE,
)
from networkhub.environments.command import bootnodes_for, thor_args
from networkhub.environments.lifecycle import Lifecycle, StopOutcome
from networkhub.errors import ConfigurationError, ExecutionError
from networkhub.network.config import NodeConfig
from networkhub.network.genesis import marshal_genesis
from networkhub.utils import console

logger = logging.getLogger(__name__)


@dataclass
class ExposedPort:
    container_port: int
    host_port: int

    @property
    def binding(self) -> str:
        return f"{self.container_port}/tcp"


class DockerNode(Lifecycle):
    def __init__(
        self,
        client: docker.DockerClient,
        node_cfg: NodeConfig,
        enodes: Sequence[str],
        network_name: str,
        ip_addr: str,
        exposed_port: ExposedPort,
        public_network: Optional[str] = None,
    ):
        self.client = client
        self.node_cfg = node_cfg
        self.node_id = node_cfg.id
        self.enodes = list(enodes)
        self.network_name = network_name
        self.ip_addr = ip_addr
        self.exposed_port = exposed_port
        self.public_network = public_network
        self.container = None

    def shell_command(self) -> str:
        """The ``sh -c`` script that writes key and genesis files and runs thor."""
        if self.public_network:
            network_arg = self.public_network
            own_enode = None
            steps = [f"cd {DOCKER_HOME_DIR}"]
        else:
            network_arg = GENESIS_FILE
            own_enode = self.node_cfg.enode(self.ip_addr)
            steps = [
                f"cd {DOCKER_HOME_DIR}",
                f'echo "$GENESIS" > {GENESIS_FILE}',
                f'echo "$PRIVATEKEY" > {MASTER_KEY_FILE}',
                f'echo "$PRIVATEKEY" > {P2P_KEY_FILE}',
            ]

        args = thor_args(self.node_cfg, network_arg, bootnodes_for(self.enodes, own_enode))
        steps.append(" ".join(["exec", "thor"] + [shlex.quote(arg) for arg in args]))
        return "; ".join(steps)

    def environment(self) -> dict[str, str]:
        if self.public_network:
            return {}
        if self.node_cfg.genesis is None:
            raise ConfigurationError("genesis is not set", node_id=self.node_id)
        return {
            "GENESIS": marshal_genesis(self.node_cfg.genesis),
            "PRIVATEKEY": self.node_cfg.key,
        }

    def _ensure_image(self, image: str) -> None:
        try:
            self.client.images.get(image)
            logger.debug("Image %s already available locally", image)
            return
        except docker.errors.ImageNotFound:
            pass
        except docker.errors.APIError as e:
            raise ExecutionError(
                f"failed to inspect Docker image {image}: {e}", node_id=self.node_id
            ) from e

        console.print(f"[yellow]Pulling image: {image}[/yellow]")
        try:
            self.client.images.pull(image)
        except docker.errors.APIError as e:
            raise ExecutionError(
                f"failed to pull Docker image {image}: {e}", node_id=self.node_id
            ) from e
        console.print(f"[green]✓ Successfully pulled image: {image}[/green]")

    def _remove_stale_container(self) -> None:
        try:
            stale = self.client.containers.get(self.node_id)
        except docker.errors.NotFound:
            return
        console.print(f"[yellow]Removing existing container {self.node_id}[/yellow]")
        stale.remove(force=True)

    def start(self) -> None:
        image = self.node_cfg.exec_artifact
        self._ensure_image(image)
        environment = self.environment()
        command = self.shell_command()

        try:
            self._remove_stale_container()
            endpoint = self.client.api.create_endpoint_config(ipv4_address=self.ip_addr)
            self.container = self.client.containers.create(
                image,
                entrypoint=["sh", "-c"],
                command=[command],
                name=self.node_id,
                hostname=f"{DOCKER_HOSTNAME_PREFIX}{self.node_id}",
                environment=environment,
                ports={self.exposed_port.binding: self.exposed_port.host_port},
                network=self.network_name,
                networking_config={self.network_name: endpoint},
            )
        except docker.errors.APIError as e:
            raise ExecutionError(
                f"failed to create Docker container: {e}", node_id=self.node_id
            ) from e

        try:
            self.container.start()
        except docker.errors.APIError as e:
            try:
                self.container.remove(force=True)
            except docker.errors.APIError:
                logger.warning("Could not remove failed container %s", self.node_id)
            self.container = None
            raise ExecutionError(
                f"failed to start Docker container: {e}", node_id=self.node_id
            ) from e

        console.print(
            f"[green]✓ Started container {self.node_id} at {self.ip_addr} "
            f"(API port {self.exposed_port.host_port})[/green]"
        )

    def stop(self) -> StopOutcome:
        if self.container is None:
            return StopOutcome.GRACEFUL

        try:
            self.container.stop(timeout=CONTAINER_STOP_TIMEOUT)
            self.container.reload()
            exit_code = self.container.attrs.get("State", {}).get("ExitCode")
            self.container.remove()
        except docker.errors.NotFound:
            self.container = None
            return StopOutcome.GRACEFUL
        except docker.errors.APIError as e:
            raise ExecutionError(
                f"failed to stop Docker container: {e}", node_id=self.node_id
            ) from e

        self.container = None
        if exit_code == DOCKER_KILLED_EXIT_CODE:
            console.print(
                f"[yellow]⚠️  Container {self.node_id} did not exit within "
                f"{CONTAINER_STOP_TIMEOUT}s, killed[/yellow]"
            )
            return StopOutcome.KILLED
        console.print(f"[green]✓ Stopped container {self.node_id}[/green]")
        return StopOutcome.GRACEFUL
