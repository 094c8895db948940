"""
Environments - Run a network's nodes as local processes or Docker containers.
"""

from networkhub.constants import DOCKER, LOCAL
from networkhub.environments.launcher import (
    DockerEnvironment,
    Launcher,
    LocalEnvironment,
)
from networkhub.environments.lifecycle import Lifecycle, StopOutcome
from networkhub.environments.overseer import Overseer

__all__ = [
    "DOCKER",
    "LOCAL",
    "DockerEnvironment",
    "Launcher",
    "Lifecycle",
    "LocalEnvironment",
    "Overseer",
    "StopOutcome",
]
