"""
Health checks - wait for peer convergence and block availability.

These helpers only perform read-only HTTP calls against thor's REST API and
never touch an environment's lock, so callers run them after start returns.
"""

import logging
import threading
import time
from typing import Any, Optional, Sequence, Union

import requests

from networkhub.constants import (
    BEST_BLOCK,
    BLOCKS_ENDPOINT,
    HEALTH_CHECK_TIMEOUT,
    HEALTH_POLL_INTERVAL,
    HTTP_REQUEST_TIMEOUT,
    PEER_POLL_INTERVAL,
    PEER_WAIT_TIMEOUT,
    PEERS_ENDPOINT,
)
from networkhub.errors import (
    ExecutionError,
    NetworkHubError,
    NetworkHubTimeoutError,
    PeerConvergenceTimeoutError,
)
from networkhub.network.config import NetworkConfig, NodeConfig
from networkhub.utils import console

logger = logging.getLogger(__name__)

BlockRef = Union[int, str]


def get_peer_count(http_addr: str) -> int:
    """Return how many peers the node at ``http_addr`` reports."""
    response = requests.get(f"{http_addr}{PEERS_ENDPOINT}", timeout=HTTP_REQUEST_TIMEOUT)
    response.raise_for_status()
    return len(response.json() or [])


def fetch_block(http_addr: str, block: BlockRef = BEST_BLOCK) -> Optional[dict[str, Any]]:
    """Fetch a block by number, ID or ``best``. Returns None if the node has no such block."""
    response = requests.get(
        f"{http_addr}{BLOCKS_ENDPOINT}/{block}", timeout=HTTP_REQUEST_TIMEOUT
    )
    response.raise_for_status()
    return response.json() or None


def _wait(seconds: float, cancel: Optional[threading.Event]) -> bool:
    """Sleep for ``seconds``; return True if ``cancel`` was set meanwhile."""
    if cancel is not None:
        return cancel.wait(seconds)
    time.sleep(seconds)
    return False


def _all_connected(nodes: Sequence[NodeConfig], expected: int) -> bool:
    for node in nodes:
        try:
            count = get_peer_count(node.http_addr)
        except (requests.RequestException, ValueError) as e:
            logger.debug("Peer count for %s unavailable: %s", node.id, e)
            return False
        if count < expected:
            logger.debug("Node %s has %d/%d peers", node.id, count, expected)
            return False
    return True


def wait_for_peers_connection(
    nodes: Sequence[NodeConfig],
    timeout: Optional[float] = None,
    cancel: Optional[threading.Event] = None,
    poll_interval: float = PEER_POLL_INTERVAL,
) -> None:
    """Block until every node sees all the others as peers.

    The first check runs immediately, then every ``poll_interval`` seconds.

    Args:
        nodes: The nodes to check. An empty list succeeds at once.
        timeout: Overall deadline in seconds. Defaults to two minutes.
        cancel: Optional event that aborts the wait when set.

    Raises:
        PeerConvergenceTimeoutError: If the deadline passes or ``cancel`` is set first.
    """
    if not nodes:
        return

    timeout = PEER_WAIT_TIMEOUT if timeout is None else timeout
    expected = len(nodes) - 1
    deadline = time.monotonic() + timeout

    while True:
        if _all_connected(nodes, expected):
            console.print(f"[green]✓ All {len(nodes)} nodes are connected[/green]")
            return

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            break
        if _wait(min(poll_interval, remaining), cancel):
            raise PeerConvergenceTimeoutError(
                "cancelled while waiting for nodes to connect", timeout_seconds=timeout
            )

    raise PeerConvergenceTimeoutError(
        "timed out waiting for nodes to connect", timeout_seconds=timeout
    )


def health_check(
    http_addr: str,
    block: BlockRef = BEST_BLOCK,
    timeout: float = HEALTH_CHECK_TIMEOUT,
    poll_interval: float = HEALTH_POLL_INTERVAL,
) -> dict[str, Any]:
    """Poll a node until it returns ``block``.

    ``timeout`` is the total deadline; the node is asked again every
    ``poll_interval`` seconds until then.

    Returns:
        The block the node returned.

    Raises:
        NetworkHubTimeoutError: If the node did not return the block in time.
    """
    deadline = time.monotonic() + timeout
    while True:
        try:
            blk = fetch_block(http_addr, block)
            if blk:
                return blk
            logger.debug("Node %s has no block %s yet", http_addr, block)
        except (requests.RequestException, ValueError) as e:
            logger.debug("Waiting for node %s to be healthy: %s", http_addr, e)

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise NetworkHubTimeoutError(
                f"timeout waiting for node {http_addr} to be healthy",
                timeout_seconds=timeout,
            )
        time.sleep(min(poll_interval, remaining))


def check_network_health(
    network_cfg: NetworkConfig,
    block: BlockRef = BEST_BLOCK,
    timeout: float = HEALTH_CHECK_TIMEOUT,
) -> None:
    """Check that every node is up, connected to the others, and on the same chain.

    Raises:
        NetworkHubError: Naming the phase and node that failed.
    """
    nodes = network_cfg.nodes
    if not nodes:
        raise NetworkHubError("no nodes defined in the network", network_id=network_cfg.id)

    for node in nodes:
        try:
            health_check(node.http_addr, block, timeout)
        except NetworkHubError as e:
            raise e.wrap(f"node health check failed: node {node.id}") from e

    if not network_cfg.is_public_network() and len(nodes) > 1:
        try:
            wait_for_peers_connection(nodes, timeout, poll_interval=HEALTH_POLL_INTERVAL)
        except NetworkHubError as e:
            raise e.wrap("peer connectivity check failed") from e

    _check_block_consistency(nodes, block)
    console.print(f"[green]✓ Network {network_cfg.id} is healthy[/green]")


def _check_block_consistency(nodes: Sequence[NodeConfig], block: BlockRef) -> None:
    base_id = None
    for node in nodes:
        try:
            blk = fetch_block(node.http_addr, block)
        except (requests.RequestException, ValueError) as e:
            raise ExecutionError(
                f"block consistency check failed: unable to get block {block}: {e}",
                node_id=node.id,
            ) from e

        block_id = (blk or {}).get("id")
        if base_id is None:
            base_id = block_id
        elif block_id != base_id:
            raise ExecutionError(
                f"block consistency check failed: block mismatch at {block} - "
                f"node {node.id} has {block_id}, expected {base_id}",
                node_id=node.id,
            )
