"""
Small helpers shared by the network and environment modules.
"""

from typing import Optional

from rich.console import Console

from networkhub.errors import ConfigurationError

console = Console()


def split_api_addr(api_addr: str, node_id: Optional[str] = None) -> tuple[str, int]:
    """Split a ``host:port`` API address.

    An empty port is returned as ``0`` so the caller can allocate one.

    Raises:
        ConfigurationError: If the address has no ``:`` or the port is not a number.
    """
    host, sep, port = (api_addr or "").rpartition(":")
    if not sep:
        raise ConfigurationError(
            f"unable to parse API address {api_addr!r}", node_id=node_id
        )
    if port == "":
        return host, 0
    try:
        return host, int(port)
    except ValueError:
        raise ConfigurationError(
            f"unable to parse API port in {api_addr!r}", node_id=node_id
        ) from None


def join_api_addr(host: str, port: int) -> str:
    return f"{host}:{port}"


def http_addr_from_api_addr(api_addr: str) -> str:
    """Return the URL the orchestrator uses to reach a node's API."""
    return "http://" + api_addr.replace("0.0.0.0", "127.0.0.1")
