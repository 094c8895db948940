"""
Allocators - IPv4 addresses for docker bridge networks and free host ports.
"""

from networkhub.allocators.ip import IpAllocator
from networkhub.allocators.ports import PortAllocator, default_port_allocator

__all__ = ["IpAllocator", "PortAllocator", "default_port_allocator"]
