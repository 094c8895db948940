"""
Genesis payloads for each thor fork generation.

A node carries one ``Genesis``: a fork tag plus the JSON payload for that
fork. ``marshal_genesis`` turns it into the ``genesis.json`` text thor reads.
"""

import copy
import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from networkhub.errors import ConfigurationError

PRE_COEF_FORKS = ("VIP191", "ETH_CONST", "BLOCKLIST", "ETH_IST", "VIP214", "FINALITY")
POST_COEF_FORKS = PRE_COEF_FORKS + ("VIPGASCOEF",)


class GenesisFork(str, Enum):
    PRE_COEF = "pre_coef"
    POST_COEF = "post_coef"
    GALACTICA = "galactica"
    HAYABUSA = "hayabusa"


@dataclass
class ChainConfig:
    """Chain parameters carried by a hayabusa genesis under ``config``."""

    block_interval: int = 0
    epoch_length: int = 0
    seeder_interval: int = 0
    validator_eviction_threshold: int = 0
    eviction_check_interval: int = 0
    low_staking_period: int = 0
    medium_staking_period: int = 0
    high_staking_period: int = 0
    cooldown_period: int = 0
    hayabusa_tp: Optional[int] = None

    @classmethod
    def from_thor(cls, source: Mapping[str, Any]) -> "ChainConfig":
        """Build a ChainConfig from thor's JSON chain config.

        Keys thor knows about but this config does not are ignored.
        """
        if source is None:
            raise ConfigurationError("chain config source cannot be empty")

        hayabusa_tp = source.get("hayabusaTP")
        return cls(
            block_interval=int(source.get("blockInterval", 0)),
            epoch_length=int(source.get("epochLength", 0)),
            seeder_interval=int(source.get("seederInterval", 0)),
            validator_eviction_threshold=int(
                source.get("validatorEvictionThreshold", 0)
            ),
            eviction_check_interval=int(source.get("evictionCheckInterval", 0)),
            low_staking_period=int(source.get("lowStakingPeriod", 0)),
            medium_staking_period=int(source.get("mediumStakingPeriod", 0)),
            high_staking_period=int(source.get("highStakingPeriod", 0)),
            cooldown_period=int(source.get("cooldownPeriod", 0)),
            hayabusa_tp=int(hayabusa_tp) if hayabusa_tp is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "blockInterval": self.block_interval,
            "epochLength": self.epoch_length,
            "seederInterval": self.seeder_interval,
            "validatorEvictionThreshold": self.validator_eviction_threshold,
            "evictionCheckInterval": self.eviction_check_interval,
            "lowStakingPeriod": self.low_staking_period,
            "mediumStakingPeriod": self.medium_staking_period,
            "highStakingPeriod": self.high_staking_period,
            "cooldownPeriod": self.cooldown_period,
            "hayabusaTP": self.hayabusa_tp,
        }


@dataclass
class Genesis:
    fork: GenesisFork
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(
        cls, data: Mapping[str, Any], fork: Optional[str] = None
    ) -> "Genesis":
        """Wrap a genesis document, inferring the fork from its contents if not given."""
        if not isinstance(data, Mapping):
            raise ConfigurationError("genesis must be a mapping")
        if fork:
            try:
                tag = GenesisFork(fork)
            except ValueError:
                raise ConfigurationError(f"unknown genesis fork {fork!r}") from None
        else:
            tag = infer_fork(data)
        return cls(fork=tag, payload=copy.deepcopy(dict(data)))


def infer_fork(data: Mapping[str, Any]) -> GenesisFork:
    fork_config = data.get("forkConfig") or {}
    if "config" in data or "HAYABUSA" in fork_config:
        return GenesisFork.HAYABUSA
    if "GALACTICA" in fork_config or "additionalFields" in fork_config:
        return GenesisFork.GALACTICA
    if "VIPGASCOEF" in fork_config:
        return GenesisFork.POST_COEF
    return GenesisFork.PRE_COEF


def _select_forks(fork_config: Mapping[str, Any], names: tuple) -> dict[str, int]:
    return {name: int(fork_config.get(name, 0)) for name in names}


def _flatten_additional_fields(fork_config: dict[str, Any]) -> dict[str, Any]:
    extra = fork_config.get("additionalFields")
    if not isinstance(extra, dict):
        return fork_config

    remaining = {}
    for key, value in extra.items():
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            fork_config[key] = int(value)
        else:
            remaining[key] = value
    if remaining:
        fork_config["additionalFields"] = remaining
    else:
        del fork_config["additionalFields"]
    return fork_config


def genesis_document(genesis: Genesis) -> dict[str, Any]:
    """Return the JSON document for ``genesis`` as thor expects it for its fork."""
    doc = copy.deepcopy(genesis.payload)
    fork_config = dict(doc.get("forkConfig") or {})

    if genesis.fork == GenesisFork.PRE_COEF:
        doc["forkConfig"] = _select_forks(fork_config, PRE_COEF_FORKS)
    elif genesis.fork == GenesisFork.POST_COEF:
        doc["forkConfig"] = _select_forks(fork_config, POST_COEF_FORKS)
    elif genesis.fork == GenesisFork.GALACTICA:
        doc["forkConfig"] = _flatten_additional_fields(fork_config)
    elif genesis.fork == GenesisFork.HAYABUSA:
        doc["forkConfig"] = _flatten_additional_fields(fork_config)
        if doc.get("config") is not None:
            doc["config"] = ChainConfig.from_thor(doc["config"]).to_dict()
    else:
        raise ConfigurationError(f"unsupported genesis fork {genesis.fork!r}")

    return doc


def marshal_genesis(genesis: Genesis) -> str:
    """Serialize ``genesis`` to the text written to ``genesis.json``."""
    return json.dumps(genesis_document(genesis))
