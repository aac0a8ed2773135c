"""Helpers for waiting, editing JSON and TOML, addresses and random names in tests."""