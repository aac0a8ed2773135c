"""Modify TOML config files that live inside docker volumes."""

from __future__ import annotations

import logging
import tomllib
from collections.abc import Mapping
from typing import Any

import tomli_w

from chainharness.docker.client import DockerClient, DockerError
from chainharness.docker.files import Retriever, Writer
from chainharness.testutil.tomlutil import recursive_modify


def modify_config_file(
    client: DockerClient,
    test_name: str,
    volume_name: str,
    file_path: str,
    modifications: Mapping[str, Any],
    logger: logging.Logger | None = None,
) -> None:
    """Read a TOML file from a volume, apply ``modifications`` and write it back.

    Raises RuntimeError if the file cannot be read or written and ValueError if
    it cannot be decoded or encoded.
    """
    try:
        raw = Retriever(client, test_name, logger).single_file_content(volume_name, file_path)
    except (DockerError, TimeoutError, FileNotFoundError) as exc:
        raise RuntimeError(f"failed to retrieve {file_path}: {exc}") from exc

    try:
        config = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise ValueError(f"failed to unmarshal {file_path}: {exc}") from exc

    recursive_modify(config, modifications)

    try:
        encoded = tomli_w.dumps(config).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise ValueError(f"failed to encode {file_path}: {exc}") from exc

    try:
        Writer(client, test_name, logger).write_file(volume_name, file_path, encoded)
    except (DockerError, TimeoutError) as exc:
        raise RuntimeError(f"overwriting {file_path}: {exc}") from exc