"""networkhub - orchestrate multi-node Thor test networks."""

__version__ = "0.1.0"
