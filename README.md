# chainharness

Building blocks for integration tests that run blockchain nodes and
data-availability (DA) nodes in Docker containers.

- **Interfaces and value types** (`chainharness.types`): the protocols `Chain`,
  `ChainNode`, `Broadcaster`, `Provider`, `Wallet`, `DataAvailabilityNetwork`
  and `DANode`, and the value types `P2PInfo`, `Header`, `Blob`, `DANodeType`
  and `DANodeStartOptions`.
- **Test utilities** (`chainharness.testutil`): waiting on block heights and
  conditions, editing JSON documents and TOML configs, building peer-address
  lists, bech32 address conversion and random names.
- **Docker plumbing** (`chainharness.docker`): a small Docker Engine API client,
  one-shot container runs, local port reservation, volume ownership, and
  reading and writing single files inside Docker volumes.

Runtime dependencies are `httpx`, which talks to the Docker Engine API, and
`tomli-w`, which writes TOML files back into volumes. Install the `test` extra
for `pytest` and `pytest-asyncio`.

## Configuring a DA node

`build_celestia_custom_env_var` in `chainharness.types.da_network` builds the
value for a light node's `CELESTIA_CUSTOM` environment variable. Empty parts
are left out:

```python
from chainharness.types.da_network import build_celestia_custom_env_var

build_celestia_custom_env_var("testchain", "hash123", "")
# 'testchain:hash123'
```

In `chainharness.types.da_node`, `P2PInfo.get_p2p_address()` takes the first
`/ip4/<addr>/tcp/<port>` address and appends `/p2p/<peer id>`. It raises
`ValueError` if no such address exists. `P2PInfo.from_json` reads the node
API's `{"ID": ..., "Addrs": [...]}` form.

`with_chain_id`, `with_additional_start_arguments`,
`with_environment_variables` and `with_config_modifications` each return a
callable that sets one field of a `DANodeStartOptions`. `str(DANodeType.BRIDGE)`
is `"bridge"`, and the same pattern gives `"light"` and `"full"`.

## Editing documents

```python
from chainharness.testutil.maps import set_field, remove_field

genesis = b'{"app_state": {"bank": {}}}'
genesis = set_field(genesis, "app_state.staking.params.bond_denom", "utia")
genesis = remove_field(genesis, "app_state.bank")
```

- Missing intermediate objects are created along the way.
- A path that passes through a value that is not an object raises `ValueError`
  containing `invalid path`.
- Setting `None` deletes the field.
- The result is JSON bytes with two-space indentation and sorted keys.

`recursive_modify(config, modifications)` from `chainharness.testutil.tomlutil`
merges nested overrides into a parsed config in place. A table that is missing,
or is not a table, is replaced by a new one:

```python
from chainharness.testutil.tomlutil import recursive_modify

config = {"tx_index": {"indexer": "null"}, "moniker": "node"}
recursive_modify(config, {"tx_index": {"indexer": "kv"}})
```

## Waiting

`chainharness.testutil.wait` works with any object that has an async `height()`
method (see `Heighter`).

- `await for_blocks(delta, *chains)` waits until every chain has advanced by at
  least `delta` blocks. A height of 0 is never taken as the starting point. The
  first error from any chain is raised.
- `for_blocks_until(max_blocks, fn)` calls `fn(i)` for `i` from 0 up to
  `max_blocks - 1`. It stops at the first call that does not raise, and
  re-raises the last error if every call fails.
- `await for_nodes_in_sync(chain, nodes)` checks once and raises `RuntimeError`
  if any node is below the chain's height.
- `await for_in_sync(chain, *nodes)` repeats that check until it passes.
- `await for_condition(timeout_after, polling_interval, fn)` polls `fn`, which
  may be sync or async, until it returns true. It raises `TimeoutError` when
  time runs out, and `RuntimeError` if `fn` raises.
- `await for_da_node_to_reach_height(node, target_height, timeout)` polls the
  node's header once a second until it reaches `target_height`.

`for_blocks` and `for_in_sync` raise `ValueError` when given no chains or no
nodes.

## Docker

`DockerClient.from_env()` connects to the daemon named by `DOCKER_HOST`. It
accepts `unix://`, `tcp://`, `http://` or `https://`, and falls back to
`unix:///var/run/docker.sock`. The client covers images, containers, archives,
networks and pruning:

- images: `image_inspect`, `image_pull`, `image_list`
- containers: `container_create`, `container_start`, `container_stop`,
  `container_remove`, `container_wait`, `container_logs`
- archives: `copy_from_container`, `copy_to_container`
- networks and pruning: `network_create`, `network_list`, `volumes_prune`,
  `networks_prune`

Daemon errors are raised as `DockerError`, which carries `status_code`,
`is_not_found`, `is_not_modified` and `is_conflict`. The client can be used as a
context manager.

`chainharness.docker.client` also provides:

- `demultiplex_logs(data)`, which splits a multiplexed log stream into stdout
  and stderr;
- `start_container`, which starts a container with a 30-second request timeout;
- `ensure_busybox`, which pulls `busybox:stable` once per process when it is
  missing.

### One-shot containers

```python
from chainharness.docker.client import DockerClient
from chainharness.docker.image import ContainerOptions, Image

client = DockerClient.from_env()
image = Image(client, network_id, "my-test", "busybox", "stable")
result = image.run(["sh", "-c", "echo hi"], ContainerOptions(binds=["vol:/mnt"]))
if result.err is None:
    print(result.stdout)
```

`Image.run` works through these steps:

1. It pulls the image if it is missing.
2. It removes any container that already has the chosen name, then creates a
   container labelled with the test name and attached to the network.
3. It starts the container, waits for it to exit and collects its logs.
4. It stops and removes the container.

Failures are reported in `ContainerExecResult.err`, not raised. The exit code is
-1 if the container could not be started. A non-zero exit leaves the combined
output in the error message. `Image.start` returns a `Container`, and
`Container.wait` and `Container.stop` can be called on it directly.

### Files, configs and volumes

These all use a short-lived `busybox` container:

- `Retriever(client, test_name).single_file_content(volume_name, rel_path)`
  returns a file's bytes. It raises `FileNotFoundError` if the file is absent.
- `Writer(client, test_name).write_file(volume_name, rel_path, content)` writes
  a file. The file is given the owner of the volume's root.
- `modify_config_file(client, test_name, volume_name, file_path, modifications,
  logger)` in `chainharness.docker.tomlconfig` reads a TOML file, applies
  `recursive_modify` and writes the file back.
- `set_volume_owner(VolumeOwnerOptions(...))` in `chainharness.docker.volumeowner`
  chowns a volume to `uid_gid`, or to root when it is empty, and sets mode 0700.

### Names, ports and wallets

- `sanitize_container_name` replaces characters Docker does not accept with `_`.
- `condense_host_name` shortens names of 64 characters or more by keeping the
  first and last 30 characters, joined by `_._`.
- `get_host_port(inspect_json, port_id)` returns the first published
  `host:port`, or `""` if the port is not published.
- `open_listener`, `get_port` and `generate_port_bindings` in
  `chainharness.docker.ports` reserve local ports and return the `PortBinding`
  values. The listening sockets are kept open in `Listeners`; close them with
  `close_all()` before the ports are used.
- `chainharness.docker.wallet.Wallet` is a frozen record with `address`,
  `formatted_address`, `bech32_prefix` and `key_name`.
- `address_to_bech32` and `address_from_wallet` in
  `chainharness.testutil.sdkacc` convert between raw bytes and bech32.

## What the package does not do

- **No per-test network setup or automatic cleanup.** Nothing picks a free
  subnet, creates a test network, or removes a test's containers, volumes and
  networks when the test ends. Use `DockerClient.network_create`,
  `container_list`, `container_remove`, `volumes_prune` and `networks_prune`
  yourself. Filter on the `CLEANUP_LABEL` label from `chainharness.docker.client`
  that `Image` puts on its containers.
- **No concrete chain or DA network.** `Chain`, `ChainNode`, `Provider`,
  `DataAvailabilityNetwork` and `DANode` are interfaces only. The package does
  not start chains or DA nodes, and has no functions to fund wallets or
  broadcast transactions.