"""
LocalNode - Runs one thor node as a child process.
"""

import logging
import os
import shutil
import signal
import subprocess
import sys
import threading
import time
from pathlib import Path
from typing import IO, Optional, Sequence

import psutil

from networkhub.constants import (
    FAKE_EXECUTION_WARMUP,
    GENESIS_FILE,
    LOCAL_ENODE_IP,
    MASTER_KEY_FILE,
    NODE_STOP_GRACE_PERIOD,
    P2P_KEY_FILE,
)
from networkhub.environments.command import bootnodes_for, thor_args
from networkhub.environments.lifecycle import Lifecycle, StopOutcome
from networkhub.errors import ConfigurationError, ExecutionError
from networkhub.network.config import NodeConfig
from networkhub.network.genesis import marshal_genesis
from networkhub.utils import console

logger = logging.getLogger(__name__)


def kill_previous_processes(data_dir: str, grace_period: float = NODE_STOP_GRACE_PERIOD) -> list[int]:
    """Terminate leftover thor processes started against ``data_dir``.

    Returns:
        The PIDs that were signalled.
    """
    stale = []
    for proc in psutil.process_iter(["pid", "cmdline"]):
        cmdline = proc.info.get("cmdline") or []
        if proc.pid == os.getpid():
            continue
        if data_dir in cmdline and "--network" in cmdline:
            stale.append(proc)

    for proc in stale:
        logger.info("Killing previous process %d using %s", proc.pid, data_dir)
        try:
            proc.terminate()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied as e:
            raise ExecutionError(
                f"failed to kill previous process {proc.pid}: {e}"
            ) from e

    _, alive = psutil.wait_procs(stale, timeout=grace_period)
    for proc in alive:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            pass
    return [proc.pid for proc in stale]


def _forward_output(node_id: str, stream: IO[str], sink: IO[str]) -> None:
    for line in stream:
        line = line.rstrip("\n")
        if line:
            sink.write(f"[{node_id}] {line}\n")
            sink.flush()
    stream.close()


class LocalNode(Lifecycle):
    def __init__(
        self,
        node_cfg: NodeConfig,
        enodes: Sequence[str],
        public_network: Optional[str] = None,
        grace_period: float = NODE_STOP_GRACE_PERIOD,
    ):
        self.node_cfg = node_cfg
        self.node_id = node_cfg.id
        self.enodes = list(enodes)
        self.public_network = public_network
        self.grace_period = grace_period
        self.process: Optional[subprocess.Popen] = None
        self._output_threads: list[threading.Thread] = []

    @property
    def genesis_path(self) -> str:
        return os.path.join(self.node_cfg.config_dir, GENESIS_FILE)

    def start(self) -> None:
        if not self.public_network and self.node_cfg.genesis is None:
            raise ConfigurationError("genesis is not set", node_id=self.node_id)

        kill_previous_processes(self.node_cfg.data_dir)
        try:
            self._prepare_filesystem()
        except OSError as e:
            raise ExecutionError(
                f"failed to prepare node files: {e}", node_id=self.node_id
            ) from e

        command = [self.node_cfg.exec_artifact] + self.command_args()
        logger.debug("Starting %s: %s", self.node_id, " ".join(command))

        if self.node_cfg.fake_execution:
            console.print(
                f"[yellow]Fake execution for node {self.node_id}, not spawning thor[/yellow]"
            )
            time.sleep(FAKE_EXECUTION_WARMUP)
            return

        try:
            self.process = subprocess.Popen(
                command,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise ExecutionError(
                f"failed to start thor: {e}", node_id=self.node_id
            ) from e

        for stream, sink in ((self.process.stdout, sys.stdout), (self.process.stderr, sys.stderr)):
            if stream is None:
                continue
            thread = threading.Thread(
                target=_forward_output, args=(self.node_id, stream, sink), daemon=True
            )
            thread.start()
            self._output_threads.append(thread)

        console.print(
            f"[green]✓ Started node {self.node_id} (PID: {self.process.pid})[/green]"
        )

    def command_args(self) -> list[str]:
        if self.public_network:
            network_arg = self.public_network
            own_enode = None
        else:
            network_arg = self.genesis_path
            own_enode = self.node_cfg.enode(LOCAL_ENODE_IP)
        return thor_args(
            self.node_cfg, network_arg, bootnodes_for(self.enodes, own_enode)
        )

    def _prepare_filesystem(self) -> None:
        if not self.public_network:
            shutil.rmtree(self.node_cfg.data_dir, ignore_errors=True)

        Path(self.node_cfg.config_dir).mkdir(parents=True, exist_ok=True)
        Path(self.node_cfg.data_dir).mkdir(parents=True, exist_ok=True)

        if self.public_network:
            return

        if self.node_cfg.key:
            for name in (MASTER_KEY_FILE, P2P_KEY_FILE):
                Path(self.node_cfg.config_dir, name).write_text(self.node_cfg.key)

        Path(self.genesis_path).write_text(marshal_genesis(self.node_cfg.genesis))

    def stop(self) -> StopOutcome:
        if self.process is None:
            return StopOutcome.GRACEFUL

        try:
            self.process.send_signal(signal.SIGINT)
        except ProcessLookupError:
            pass

        try:
            returncode = self.process.wait(timeout=self.grace_period)
        except subprocess.TimeoutExpired:
            self.process.kill()
            self.process.wait()
            console.print(
                f"[yellow]⚠️  Node {self.node_id} did not exit within "
                f"{self.grace_period}s, process killed[/yellow]"
            )
            return StopOutcome.KILLED
        finally:
            for thread in self._output_threads:
                thread.join(timeout=1)

        if returncode not in (0, -signal.SIGINT):
            raise ExecutionError(
                f"process exited with code {returncode}", node_id=self.node_id
            )
        console.print(f"[green]✓ Node {self.node_id} stopped gracefully[/green]")
        return StopOutcome.GRACEFUL
