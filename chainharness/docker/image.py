"""Run one-off commands in docker containers started from an image."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from chainharness.docker.client import (
    CLEANUP_LABEL,
    DockerClient,
    DockerError,
    demultiplex_logs,
    start_container,
)
from chainharness.docker.strings import condense_host_name, sanitize_container_name
from chainharness.testutil.random import lower_case_letter_string

_LOG = logging.getLogger(__name__)
_STOP_TIMEOUT = 10.0


@dataclass
class ContainerOptions:
    """Optional settings for starting a container."""

    binds: list[str] = field(default_factory=list)
    env: list[str] = field(default_factory=list)
    user: str = ""
    log_tail: int = 0
    mounts: list[dict[str, Any]] = field(default_factory=list)
    working_dir: str = ""


@dataclass
class ContainerExecResult:
    """Exit code and output of a finished container, with the error if it failed."""

    exit_code: int
    stdout: bytes = b""
    stderr: bytes = b""
    err: Exception | None = None


class Image:
    """A public docker image that commands can be run from."""

    def __init__(
        self,
        client: DockerClient,
        network_id: str,
        test_name: str,
        repository: str,
        tag: str = "latest",
        logger: logging.Logger | None = None,
    ) -> None:
        if client is None:
            raise ValueError("client cannot be None")
        if not network_id:
            raise ValueError("networkID cannot be empty")
        if not test_name:
            raise ValueError("testName cannot be empty")
        if not repository:
            raise ValueError("repository cannot be empty")
        self.client = client
        self.network_id = network_id
        self.test_name = test_name
        self.repository = repository
        self.tag = tag or "latest"
        self._log = logging.LoggerAdapter(
            logger or _LOG, {"image": self.image_ref(), "test_name": test_name}
        )

    def image_ref(self) -> str:
        """The "repository:tag" reference of the image."""
        return f"{self.repository}:{self.tag}"

    def run(self, cmd: Sequence[str], opts: ContainerOptions | None = None) -> ContainerExecResult:
        """Run ``cmd`` in a new container and wait for it; the container is removed afterwards.

        A non-zero exit code is reported in the result's ``err``.
        """
        opts = opts or ContainerOptions()
        try:
            container = self.start(cmd, opts)
        except (DockerError, TimeoutError) as exc:
            return ContainerExecResult(exit_code=-1, err=exc)
        return container.wait(opts.log_tail)

    def ensure_pulled(self) -> None:
        """Pull the image unless it is already present."""
        ref = self.image_ref()
        try:
            self.client.image_inspect(ref)
        except (DockerError, TimeoutError):
            try:
                self.client.image_pull(ref)
            except (DockerError, TimeoutError) as exc:
                raise DockerError(f"pull image {ref}: {exc}", getattr(exc, "status_code", None)) from exc

    def create_container(
        self,
        container_name: str,
        host_name: str,
        cmd: Sequence[str],
        opts: ContainerOptions,
    ) -> str:
        """Create a container, first removing any existing container of the same name."""
        try:
            existing = self.client.container_list({"name": [container_name]}, all=True)
        except DockerError as exc:
            raise DockerError(f"unable to list containers: {exc}", exc.status_code) from exc
        for found in existing:
            try:
                self.client.container_remove(found["Id"], force=True, remove_volumes=True)
            except DockerError as exc:
                raise DockerError(f"unable to remove container {container_name}: {exc}", exc.status_code) from exc

        host_config: dict[str, Any] = {
            "Binds": list(opts.binds),
            "PublishAllPorts": True,
            "AutoRemove": False,
        }
        if opts.mounts:
            host_config["Mounts"] = list(opts.mounts)
        config = {
            "Image": self.image_ref(),
            "WorkingDir": opts.working_dir,
            "Cmd": list(cmd),
            "Env": list(opts.env),
            "Hostname": host_name,
            "User": opts.user,
            "Labels": {CLEANUP_LABEL: self.test_name},
            "HostConfig": host_config,
            "NetworkingConfig": {"EndpointsConfig": {self.network_id: {}}},
        }
        return self.client.container_create(container_name, config)

    def start(self, cmd: Sequence[str], opts: ContainerOptions | None = None) -> Container:
        """Pull the image if needed, then create and start a container running ``cmd``."""
        if not cmd:
            raise ValueError("cmd cannot be empty")
        opts = opts or ContainerOptions()

        try:
            self.ensure_pulled()
        except (DockerError, TimeoutError) as exc:
            raise self.wrap_err(exc) from exc

        container_name = sanitize_container_name(f"{self.test_name}-{lower_case_letter_string(6)}")
        host_name = condense_host_name(container_name)

        try:
            container_id = self.create_container(container_name, host_name, cmd, opts)
        except (DockerError, TimeoutError) as exc:
            raise self.wrap_err(DockerError(f"create container {container_name}: {exc}")) from exc

        self._log.info(
            "Exec command=%r env=%r hostname=%s container=%s",
            " ".join(cmd),
            opts.env,
            host_name,
            container_name,
        )

        try:
            start_container(self.client, container_id)
        except (DockerError, TimeoutError) as exc:
            raise self.wrap_err(DockerError(f"start container {container_name}: {exc}")) from exc

        return Container(self, container_id, container_name, host_name)

    def wrap_err(self, err: Exception) -> DockerError:
        """Return ``err`` prefixed with the image reference."""
        return DockerError(f"image {self.repository}:{self.tag}: {err}", getattr(err, "status_code", None))


class Container:
    """A container started from an Image."""

    def __init__(self, image: Image, container_id: str, name: str, hostname: str) -> None:
        self.name = name
        self.hostname = hostname
        self.container_id = container_id
        self._image = image
        self._log = image._log

    def wait(self, log_tail: int = 0) -> ContainerExecResult:
        """Block until the container exits, collect its output and remove it.

        A non-zero ``log_tail`` keeps only that many trailing log lines.
        """
        client = self._image.client
        try:
            response = client.container_wait(self.container_id)
        except (DockerError, TimeoutError) as exc:
            return ContainerExecResult(exit_code=1, err=exc)

        exit_code = int(response.get("StatusCode", 0))
        error = response.get("Error")
        if error is not None:
            return ContainerExecResult(exit_code=exit_code, err=DockerError(str(error.get("Message", ""))))

        try:
            stdout, stderr = demultiplex_logs(client.container_logs(self.container_id, tail=log_tail or None))
        except (DockerError, TimeoutError, ValueError) as exc:
            return ContainerExecResult(exit_code=exit_code, err=exc)

        try:
            self.stop(_STOP_TIMEOUT)
        except (DockerError, TimeoutError) as exc:
            self._log.error("Failed to stop and remove container %s: %s", self.container_id, exc)

        if exit_code != 0:
            output = " ".join((stdout.decode(errors="replace"), stderr.decode(errors="replace")))
            return ContainerExecResult(exit_code=exit_code, err=RuntimeError(f"exit code {exit_code}: {output}"))

        return ContainerExecResult(exit_code=exit_code, stdout=stdout, stderr=stderr)

    def stop(self, timeout: float = _STOP_TIMEOUT) -> None:
        """Stop the container within ``timeout`` seconds and remove it with its volumes.

        A container that is already stopped or gone is not an error.
        """
        client = self._image.client
        try:
            client.container_stop(self.container_id, timeout=round(timeout))
        except DockerError as exc:
            if not (exc.is_not_modified or exc.is_not_found):
                raise self._image.wrap_err(DockerError(f"stop container {self.name}: {exc}", exc.status_code)) from exc
        try:
            client.container_remove(self.container_id, force=True, remove_volumes=True)
        except DockerError as exc:
            if not exc.is_not_found:
                raise self._image.wrap_err(DockerError(f"remove container {self.name}: {exc}", exc.status_code)) from exc