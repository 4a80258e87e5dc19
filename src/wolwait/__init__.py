"""wolwait - wake a host over the LAN and wait until it answers."""

__version__ = "0.1.0"
