import json

import httpx
import pytest

from chainharness.docker import client as client_module
from chainharness.docker.client import (
    BUSYBOX_REF,
    DockerClient,
    DockerError,
    demultiplex_logs,
    ensure_busybox,
    start_container,
)


class FakeDocker:
    def __init__(self):
        self.routes = {}
        self.requests = []

    def on(self, method, path, status=200, body=None, content=b""):
        self.routes[(method, path)] = (status, body, content)

    def __call__(self, request):
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "no such route"})
        status, body, content = self.routes[key]
        if body is not None:
            return httpx.Response(status, json=body)
        return httpx.Response(status, content=content)

    def calls(self, method, path):
        return [r for r in self.requests if r.method == method and r.url.path == path]


def frame(stream, payload):
    return bytes([stream, 0, 0, 0]) + len(payload).to_bytes(4, "big") + payload


@pytest.fixture(autouse=True)
def reset_busybox(monkeypatch):
    monkeypatch.setattr(client_module, "_has_busybox", False)


def test_demultiplex_splits_streams():
    data = frame(1, b"hello ") + frame(2, b"oops") + frame(1, b"world")
    assert demultiplex_logs(data) == (b"hello world", b"oops")


def test_demultiplex_stdin_goes_to_stdout():
    assert demultiplex_logs(frame(0, b"in") + frame(1, b"out")) == (b"inout", b"")


def test_demultiplex_drops_truncated_frame():
    data = frame(1, b"complete") + frame(2, b"partial")[:-3]
    assert demultiplex_logs(data) == (b"complete", b"")


def test_demultiplex_rejects_unknown_stream():
    with pytest.raises(ValueError, match="unrecognized input header: 7"):
        demultiplex_logs(frame(7, b"x"))


def test_demultiplex_raises_daemon_error():
    with pytest.raises(DockerError, match="error from daemon in stream: broken"):
        demultiplex_logs(frame(3, b"broken"))


def test_error_response_raises_docker_error():
    fake = FakeDocker()
    fake.on("GET", "/containers/json", status=404, body={"message": "gone"})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    with pytest.raises(DockerError) as info:
        client.container_list()
    assert info.value.status_code == 404
    assert info.value.is_not_found
    assert not info.value.is_conflict
    assert str(info.value) == "gone"


def test_conflict_status_is_reported():
    fake = FakeDocker()
    fake.on("POST", "/volumes/prune", status=409, body={"message": "a prune operation is already running"})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    with pytest.raises(DockerError) as info:
        client.volumes_prune("x")
    assert info.value.is_conflict


def test_container_create_sends_name_and_config():
    fake = FakeDocker()
    fake.on("POST", "/containers/create", status=201, body={"Id": "abc123"})
    config = {"Image": "busybox:stable", "Cmd": ["true"]}
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert client.container_create("my-box", config) == "abc123"
    request = fake.calls("POST", "/containers/create")[0]
    assert request.url.params["name"] == "my-box"
    assert json.loads(request.content) == config


def test_container_list_passes_filters_and_all():
    fake = FakeDocker()
    fake.on("GET", "/containers/json", body=[{"Id": "a"}])
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    result = client.container_list({"name": ["box"]}, all=True)
    assert result == [{"Id": "a"}]
    request = fake.requests[0]
    assert request.url.params["all"] == "1"
    assert json.loads(request.url.params["filters"]) == {"name": ["box"]}


def test_container_remove_sets_flags():
    fake = FakeDocker()
    fake.on("DELETE", "/containers/abc", status=204)
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    client.container_remove("abc", force=True, remove_volumes=False)
    params = fake.requests[0].url.params
    assert params["force"] == "1"
    assert params["v"] == "0"


def test_container_logs_tail():
    fake = FakeDocker()
    fake.on("GET", "/containers/abc/logs", content=frame(1, b"x"))
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert client.container_logs("abc") == frame(1, b"x")
    client.container_logs("abc", tail=5)
    assert fake.requests[0].url.params["tail"] == "all"
    assert fake.requests[1].url.params["tail"] == "5"


def test_container_wait_returns_response():
    fake = FakeDocker()
    fake.on("POST", "/containers/abc/wait", body={"StatusCode": 3, "Error": None})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert client.container_wait("abc") == {"StatusCode": 3, "Error": None}
    assert fake.requests[0].url.params["condition"] == "not-running"


def test_copy_round_trip_requests():
    fake = FakeDocker()
    fake.on("PUT", "/containers/abc/archive")
    fake.on("GET", "/containers/abc/archive", content=b"tarbytes")
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    client.copy_to_container("abc", "/mnt", b"tarbytes")
    assert client.copy_from_container("abc", "/mnt/f") == b"tarbytes"
    put = fake.calls("PUT", "/containers/abc/archive")[0]
    assert put.content == b"tarbytes"
    assert put.headers["content-type"] == "application/x-tar"
    assert fake.calls("GET", "/containers/abc/archive")[0].url.params["path"] == "/mnt/f"


def test_network_create_body():
    fake = FakeDocker()
    fake.on("POST", "/networks/create", status=201, body={"Id": "net1"})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert client.network_create("n", "172.5.0.0/24", {"k": "v"}) == "net1"
    body = json.loads(fake.requests[0].content)
    assert body["Name"] == "n"
    assert body["IPAM"] == {"Config": [{"Subnet": "172.5.0.0/24"}]}
    assert body["Labels"] == {"k": "v"}


def test_prune_uses_label_filter():
    fake = FakeDocker()
    fake.on("POST", "/networks/prune", body={"NetworksDeleted": ["a"]})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert client.networks_prune("lbl=t") == {"NetworksDeleted": ["a"]}
    assert json.loads(fake.requests[0].url.params["filters"]) == {"label": ["lbl=t"]}


def test_timeout_becomes_timeout_error():
    def handler(request):
        raise httpx.ReadTimeout("slow", request=request)

    client = DockerClient(transport=httpx.MockTransport(handler))
    with pytest.raises(TimeoutError):
        client.container_wait("abc")


def test_start_container_posts_start():
    fake = FakeDocker()
    fake.on("POST", "/containers/abc/start", status=204)
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    start_container(client, "abc")
    assert len(fake.calls("POST", "/containers/abc/start")) == 1


def test_start_container_propagates_errors():
    fake = FakeDocker()
    fake.on("POST", "/containers/abc/start", status=500, body={"message": "cannot start"})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    with pytest.raises(DockerError, match="cannot start"):
        start_container(client, "abc")


def test_ensure_busybox_present_does_not_pull_and_caches():
    fake = FakeDocker()
    fake.on("GET", "/images/json", body=[{"Id": "sha"}])
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    assert ensure_busybox(client) is None
    assert ensure_busybox(client) is None
    assert len(fake.requests) == 1
    assert json.loads(fake.requests[0].url.params["filters"]) == {"reference": [BUSYBOX_REF]}


def test_ensure_busybox_pulls_when_missing():
    fake = FakeDocker()
    fake.on("GET", "/images/json", body=[])
    fake.on("POST", "/images/create", content=b'{"status":"done"}')
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    ensure_busybox(client)
    pulls = fake.calls("POST", "/images/create")
    assert [p.url.params["fromImage"] for p in pulls] == [BUSYBOX_REF]


def test_ensure_busybox_list_failure():
    fake = FakeDocker()
    fake.on("GET", "/images/json", status=500, body={"message": "down"})
    client = DockerClient(base_url="http://docker", transport=httpx.MockTransport(fake), timeout=5.0)
    with pytest.raises(DockerError, match="listing images to check busybox presence: down"):
        ensure_busybox(client)


def test_from_env_rejects_unknown_scheme(monkeypatch):
    monkeypatch.setenv("DOCKER_HOST", "ssh://somewhere")
    with pytest.raises(ValueError, match="unsupported DOCKER_HOST scheme"):
        DockerClient.from_env()