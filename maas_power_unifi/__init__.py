"""
MaaS power driver for machines powered from Unifi PoE ports.

This package provides:
- Config loading (MaaS machine id -> Unifi device MAC + port)
- Unifi controller API client
- CLI entry point that switches a machine's port on/off/cycle or reports its status
"""

__version__ = "0.1.0"
