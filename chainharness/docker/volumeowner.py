"""Set the owner of a docker volume using a throwaway busybox container."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

from chainharness.docker.client import (
    BUSYBOX_REF,
    CLEANUP_LABEL,
    DOCKER_NAME_PREFIX,
    ROOT_USER,
    DockerClient,
    DockerError,
    ensure_busybox,
)
from chainharness.testutil.random import lower_case_letter_string

_LOG = logging.getLogger(__name__)
_MOUNT_PATH = "/mnt/dockervolume"


@dataclass
class VolumeOwnerOptions:
    """Settings for set_volume_owner."""

    client: DockerClient
    volume_name: str
    image_ref: str
    test_name: str
    uid_gid: str = ""
    logger: logging.Logger | None = None


def set_volume_owner(opts: VolumeOwnerOptions) -> None:
    """Chown the volume to ``opts.uid_gid`` (root if empty) and restrict it to mode 0700.

    Raises DockerError if the helper container cannot be run or exits non-zero.
    """
    log = opts.logger or _LOG
    owner = opts.uid_gid or ROOT_USER
    container_name = f"{DOCKER_NAME_PREFIX}-volumeowner-{time.time_ns()}-{lower_case_letter_string(5)}"

    ensure_busybox(opts.client)

    config = {
        "Image": BUSYBOX_REF,
        "Entrypoint": ["sh", "-c"],
        # "_" is the unused arg0 of sh -c with positional arguments.
        "Cmd": ['chown "$2" "$1" && chmod 0700 "$1"', "_", _MOUNT_PATH, owner],
        "User": ROOT_USER,
        "Labels": {CLEANUP_LABEL: opts.test_name},
        "HostConfig": {
            "Binds": [f"{opts.volume_name}:{_MOUNT_PATH}"],
            "AutoRemove": True,
        },
    }
    try:
        container_id = opts.client.container_create(container_name, config)
    except (DockerError, TimeoutError) as exc:
        raise DockerError(f"creating container: {exc}", getattr(exc, "status_code", None)) from exc

    auto_removed = False
    try:
        try:
            opts.client.container_start(container_id)
        except (DockerError, TimeoutError) as exc:
            raise DockerError(
                f"starting volume-owner container: {exc}", getattr(exc, "status_code", None)
            ) from exc

        result = opts.client.container_wait(container_id)
        auto_removed = True

        error = result.get("Error")
        if error is not None:
            raise DockerError(f"waiting for volume-owner container: {error.get('Message', '')}")
        status = int(result.get("StatusCode", 0))
        if status != 0:
            raise DockerError(f"configuring volume exited {status}")
    finally:
        if not auto_removed:
            try:
                opts.client.container_remove(container_id, force=True)
            except (DockerError, TimeoutError) as exc:
                log.warning("Failed to remove volume-owner container %s: %s", container_id, exc)