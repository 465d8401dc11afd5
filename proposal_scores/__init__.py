"""Score recomputation for off-chain voting proposals."""

__version__ = "0.1.0"
