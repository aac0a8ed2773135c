"""A small Docker Engine API client and the container helpers built on it."""

from __future__ import annotations

import json
import os
import threading
from collections.abc import Mapping, Sequence
from typing import Any

import httpx

BUSYBOX_REF = "busybox:stable"
CLEANUP_LABEL = "chainharness.test"
DOCKER_NAME_PREFIX = "chainharness"
ROOT_USER = "0:0"
DEFAULT_DOCKER_HOST = "unix:///var/run/docker.sock"

_START_TIMEOUT = 30.0
_HEADER_LENGTH = 8
_STDIN, _STDOUT, _STDERR, _SYSTEMERR = 0, 1, 2, 3

_busybox_lock = threading.Lock()
_has_busybox = False

_NO_OVERRIDE: Any = object()


class DockerError(Exception):
    """An error reported by the Docker daemon or while talking to it."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        """True if the daemon answered 404."""
        return self.status_code == 404

    @property
    def is_not_modified(self) -> bool:
        """True if the daemon answered 304."""
        return self.status_code == 304

    @property
    def is_conflict(self) -> bool:
        """True if the daemon answered 409."""
        return self.status_code == 409


def _filters(filters: Mapping[str, Sequence[str]]) -> str:
    return json.dumps({key: list(values) for key, values in filters.items()})


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    return response.text.strip() or f"status {response.status_code}"


class DockerClient:
    """Talks to the Docker Engine HTTP API."""

    def __init__(
        self,
        base_url: str = "http://docker",
        transport: httpx.BaseTransport | None = None,
        timeout: float | None = 60.0,
    ) -> None:
        self._http = httpx.Client(base_url=base_url, transport=transport, timeout=timeout)

    @classmethod
    def from_env(cls) -> DockerClient:
        """Connect to the daemon named by DOCKER_HOST, or the default unix socket."""
        host = os.environ.get("DOCKER_HOST") or DEFAULT_DOCKER_HOST
        scheme, separator, rest = host.partition("://")
        if not separator:
            raise ValueError(f"invalid DOCKER_HOST: {host}")
        if scheme == "unix":
            return cls(transport=httpx.HTTPTransport(uds=rest))
        if scheme in ("tcp", "http"):
            return cls(base_url=f"http://{rest}")
        if scheme == "https":
            return cls(base_url=f"https://{rest}")
        raise ValueError(f"unsupported DOCKER_HOST scheme: {scheme}")

    def close(self) -> None:
        """Close the underlying HTTP connection pool."""
        self._http.close()

    def __enter__(self) -> DockerClient:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        content: bytes | None = None,
        headers: Mapping[str, str] | None = None,
        timeout: Any = _NO_OVERRIDE,
    ) -> httpx.Response:
        kwargs: dict[str, Any] = {"params": params, "headers": headers}
        if json_body is not None:
            kwargs["json"] = json_body
        if content is not None:
            kwargs["content"] = content
        if timeout is not _NO_OVERRIDE:
            kwargs["timeout"] = timeout
        try:
            response = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException as exc:
            raise TimeoutError(f"{method} {path}: {exc}") from exc
        except httpx.HTTPError as exc:
            raise DockerError(f"{method} {path}: {exc}") from exc
        if response.status_code >= 400:
            raise DockerError(_error_message(response), response.status_code)
        return response

    def image_inspect(self, ref: str) -> dict[str, Any]:
        """Inspect a local image."""
        return self._request("GET", f"/images/{ref}/json").json()

    def image_pull(self, ref: str) -> None:
        """Pull a public image, discarding the progress stream."""
        self._request("POST", "/images/create", params={"fromImage": ref}, timeout=None)

    def image_list(self, reference: str) -> list[dict[str, Any]]:
        """List local images matching ``reference``."""
        params = {"filters": _filters({"reference": [reference]})}
        return self._request("GET", "/images/json", params=params).json()

    def container_list(self, filters: Mapping[str, Sequence[str]] | None = None, all: bool = False) -> list[dict[str, Any]]:
        """List containers, stopped ones too if ``all`` is set."""
        params = {"all": "1" if all else "0"}
        if filters:
            params["filters"] = _filters(filters)
        return self._request("GET", "/containers/json", params=params).json()

    def container_create(self, name: str, config: Mapping[str, Any]) -> str:
        """Create a container from a full create body; return its id."""
        response = self._request("POST", "/containers/create", params={"name": name}, json_body=dict(config))
        return response.json()["Id"]

    def container_start(self, container_id: str, timeout: float | None = None) -> None:
        """Start a container."""
        self._request("POST", f"/containers/{container_id}/start", timeout=timeout)

    def container_stop(self, container_id: str, timeout: int = 10) -> None:
        """Stop a container, giving it ``timeout`` seconds before it is killed."""
        http_timeout = timeout * 2 if timeout > 0 else _NO_OVERRIDE
        self._request("POST", f"/containers/{container_id}/stop", params={"t": str(timeout)}, timeout=http_timeout)

    def container_remove(self, container_id: str, force: bool = False, remove_volumes: bool = False) -> None:
        """Remove a container."""
        params = {"force": "1" if force else "0", "v": "1" if remove_volumes else "0"}
        self._request("DELETE", f"/containers/{container_id}", params=params)

    def container_wait(self, container_id: str, timeout: float | None = None) -> dict[str, Any]:
        """Block until the container is no longer running; return the daemon's wait response."""
        params = {"condition": "not-running"}
        return self._request("POST", f"/containers/{container_id}/wait", params=params, timeout=timeout).json()

    def container_logs(self, container_id: str, tail: int | None = None) -> bytes:
        """Return the multiplexed stdout and stderr log stream."""
        params = {"stdout": "1", "stderr": "1", "tail": str(tail) if tail else "all"}
        return self._request("GET", f"/containers/{container_id}/logs", params=params).content

    def copy_from_container(self, container_id: str, path: str) -> bytes:
        """Return a tar archive of ``path`` inside the container."""
        return self._request("GET", f"/containers/{container_id}/archive", params={"path": path}).content

    def copy_to_container(self, container_id: str, path: str, archive: bytes) -> None:
        """Extract a tar archive into ``path`` inside the container."""
        self._request(
            "PUT",
            f"/containers/{container_id}/archive",
            params={"path": path},
            content=archive,
            headers={"Content-Type": "application/x-tar"},
        )

    def network_create(self, name: str, subnet: str, labels: Mapping[str, str] | None = None) -> str:
        """Create a bridge network with one subnet; return its id."""
        body = {
            "Name": name,
            "Driver": "bridge",
            "IPAM": {"Config": [{"Subnet": subnet}]},
            "Labels": dict(labels or {}),
        }
        return self._request("POST", "/networks/create", json_body=body).json()["Id"]

    def network_list(self) -> list[dict[str, Any]]:
        """List all networks."""
        return self._request("GET", "/networks").json()

    def volumes_prune(self, label: str) -> dict[str, Any]:
        """Remove unused volumes carrying ``label``."""
        params = {"filters": _filters({"label": [label]})}
        return self._request("POST", "/volumes/prune", params=params).json()

    def networks_prune(self, label: str) -> dict[str, Any]:
        """Remove unused networks carrying ``label``."""
        params = {"filters": _filters({"label": [label]})}
        return self._request("POST", "/networks/prune", params=params).json()


def demultiplex_logs(data: bytes) -> tuple[bytes, bytes]:
    """Split a multiplexed log stream into stdout and stderr.

    A frame cut short at the end of the data is dropped.
    """
    stdout, stderr = bytearray(), bytearray()
    offset = 0
    while len(data) - offset >= _HEADER_LENGTH:
        stream = data[offset]
        if stream not in (_STDIN, _STDOUT, _STDERR, _SYSTEMERR):
            raise ValueError(f"unrecognized input header: {stream}")
        size = int.from_bytes(data[offset + 4 : offset + _HEADER_LENGTH], "big")
        start = offset + _HEADER_LENGTH
        end = start + size
        if end > len(data):
            break
        payload = data[start:end]
        if stream == _SYSTEMERR:
            raise DockerError(f"error from daemon in stream: {payload.decode(errors='replace')}")
        (stderr if stream == _STDERR else stdout).extend(payload)
        offset = end
    return bytes(stdout), bytes(stderr)


def start_container(client: DockerClient, container_id: str, timeout: float | None = _START_TIMEOUT) -> None:
    """Start the container, bounding the request by ``timeout`` seconds."""
    client.container_start(container_id, timeout=timeout)


def ensure_busybox(client: DockerClient) -> None:
    """Make sure the busybox image is present locally, pulling it once if needed."""
    global _has_busybox
    with _busybox_lock:
        if _has_busybox:
            return
        try:
            images = client.image_list(BUSYBOX_REF)
        except DockerError as exc:
            raise DockerError(f"listing images to check busybox presence: {exc}", exc.status_code) from exc
        if not images:
            client.image_pull(BUSYBOX_REF)
        _has_busybox = True