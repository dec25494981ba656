# PATH: dex/__init__.py
"""DEX access: pool-model adapters and token metadata resolution."""
