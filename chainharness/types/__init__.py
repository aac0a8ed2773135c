"""Interfaces and value types for chains, wallets and data-availability nodes."""