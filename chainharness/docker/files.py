"""Read and write single files inside docker volumes using throwaway busybox containers."""

from __future__ import annotations

import io
import logging
import posixpath
import tarfile
import time

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
_FILE_MODE = 0o600


def _container_name(kind: str) -> str:
    return f"{DOCKER_NAME_PREFIX}-{kind}-{time.time_ns()}-{lower_case_letter_string(5)}"


def _status(exc: BaseException) -> int | None:
    return getattr(exc, "status_code", None)


class Retriever:
    """Reads single files out of docker volumes."""

    def __init__(self, client: DockerClient, test_name: str, logger: logging.Logger | None = None) -> None:
        self.client = client
        self.test_name = test_name
        self._log = logger or _LOG

    def single_file_content(self, volume_name: str, rel_path: str) -> bytes:
        """Return the content of the file at ``rel_path`` inside ``volume_name``.

        Raises DockerError if the helper container fails and FileNotFoundError
        if the file is not in the archive the daemon returns.
        """
        ensure_busybox(self.client)

        config = {
            "Image": BUSYBOX_REF,
            # Root avoids permission problems when reading from the volume.
            "User": ROOT_USER,
            "Labels": {CLEANUP_LABEL: self.test_name},
            "HostConfig": {
                "Binds": [f"{volume_name}:{_MOUNT_PATH}"],
                "AutoRemove": True,
            },
        }
        try:
            container_id = self.client.container_create(_container_name("getfile"), config)
        except (DockerError, TimeoutError) as exc:
            raise DockerError(f"creating container: {exc}", _status(exc)) from exc

        try:
            try:
                archive = self.client.copy_from_container(container_id, posixpath.join(_MOUNT_PATH, rel_path))
            except (DockerError, TimeoutError) as exc:
                raise DockerError(f"copying from container: {exc}", _status(exc)) from exc
            return self._extract(archive, rel_path)
        finally:
            try:
                self.client.container_remove(container_id, force=True)
            except (DockerError, TimeoutError) as exc:
                self._log.warning("Failed to remove file content container %s: %s", container_id, exc)

    def _extract(self, archive: bytes, rel_path: str) -> bytes:
        want = posixpath.basename(rel_path)
        if archive:
            try:
                with tarfile.open(fileobj=io.BytesIO(archive), mode="r:") as tar:
                    for member in tar:
                        if member.name != want:
                            self._log.debug("Unexpected path: want %s, got %s", rel_path, member.name)
                            continue
                        extracted = tar.extractfile(member)
                        return extracted.read() if extracted is not None else b""
            except tarfile.TarError as exc:
                raise DockerError(f"reading tar from container: {exc}") from exc
        raise FileNotFoundError(f"path {rel_path!r} not found in tar from container")


class Writer:
    """Writes single files into docker volumes."""

    def __init__(self, client: DockerClient, test_name: str, logger: logging.Logger | None = None) -> None:
        self.client = client
        self.test_name = test_name
        self._log = logger or _LOG

    def write_file(self, volume_name: str, rel_path: str, content: bytes) -> None:
        """Write ``content`` to ``rel_path`` inside ``volume_name``.

        The new file takes the owner of the volume's root. Raises DockerError if
        the helper container fails or exits non-zero.
        """
        ensure_busybox(self.client)

        config = {
            "Image": BUSYBOX_REF,
            "Entrypoint": ["sh", "-c"],
            "Cmd": [
                # Give the new path the uid and gid of the mount point.
                'chown -R "$(stat -c \'%u:%g\' "$1")" "$2"',
                "_",  # unused arg0 of sh -c with positional arguments
                _MOUNT_PATH,
                _MOUNT_PATH,
            ],
            "User": ROOT_USER,
            "Labels": {CLEANUP_LABEL: self.test_name},
            "HostConfig": {
                "Binds": [f"{volume_name}:{_MOUNT_PATH}"],
                "AutoRemove": True,
            },
        }
        try:
            container_id = self.client.container_create(_container_name("writefile"), config)
        except (DockerError, TimeoutError) as exc:
            raise DockerError(f"creating container: {exc}", _status(exc)) from exc

        auto_removed = False
        try:
            archive = _single_file_archive(rel_path, content)
            try:
                self.client.copy_to_container(container_id, _MOUNT_PATH, archive)
            except (DockerError, TimeoutError) as exc:
                raise DockerError(f"copying tar to container: {exc}", _status(exc)) from exc

            try:
                self.client.container_start(container_id)
            except (DockerError, TimeoutError) as exc:
                raise DockerError(f"starting write-file container: {exc}", _status(exc)) from exc

            result = self.client.container_wait(container_id)
            auto_removed = True

            error = result.get("Error")
            if error is not None:
                raise DockerError(f"waiting for write-file container: {error.get('Message', '')}")
            status = int(result.get("StatusCode", 0))
            if status != 0:
                raise DockerError(f"chown on new file exited {status}")
        finally:
            if not auto_removed:
                try:
                    self.client.container_remove(container_id, force=True)
                except (DockerError, TimeoutError) as exc:
                    self._log.warning("Failed to remove file content container %s: %s", container_id, exc)


def _single_file_archive(rel_path: str, content: bytes) -> bytes:
    buffer = io.BytesIO()
    info = tarfile.TarInfo(name=rel_path)
    info.size = len(content)
    info.mode = _FILE_MODE
    info.mtime = time.time()
    # No owner name: the container chowns the file afterwards.
    with tarfile.open(fileobj=buffer, mode="w", format=tarfile.PAX_FORMAT) as tar:
        tar.addfile(info, io.BytesIO(content))
    return buffer.getvalue()