"""Docker-backed test harness building blocks for blockchain and data-availability nodes."""

__version__ = "0.1.0"