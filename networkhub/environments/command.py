"""
Command line assembly for the thor client, shared by both substrates.
"""

from typing import Optional, Sequence

from networkhub.network.config import NodeConfig


def bootnodes_for(enodes: Sequence[str], own_enode: Optional[str]) -> list[str]:
    """Drop the node's own enode from the bootstrap list."""
    return [e for e in enodes if e != own_enode]


def thor_args(
    node_cfg: NodeConfig, network_arg: str, bootnodes: Sequence[str]
) -> list[str]:
    """Build the flags passed to thor, without the executable itself.

    ``additional_args`` are appended last in their insertion order. A
    ``network`` entry there is skipped because ``--network`` is always set.
    """
    args = [
        "--network",
        network_arg,
        "--data-dir",
        node_cfg.data_dir,
        "--config-dir",
        node_cfg.config_dir,
        "--api-addr",
        node_cfg.api_addr,
        "--api-cors",
        node_cfg.effective_api_cors,
        "--verbosity",
        str(node_cfg.effective_verbosity),
        "--nat",
        "none",
        "--p2p-port",
        str(node_cfg.p2p_listen_port),
    ]
    if bootnodes:
        args += ["--bootnode", ",".join(bootnodes)]

    for key, value in node_cfg.additional_args.items():
        if key == "network":
            continue
        args += [f"--{key}", value]
    return args
