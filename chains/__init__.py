# PATH: chains/__init__.py
"""Chain access: JSON-RPC provider with failover and hex ABI codec."""

from chains.providers import RPCProvider, RPCResponse, RPCStats

__all__ = ["RPCProvider", "RPCResponse", "RPCStats"]
