# lxfacade

`lxfacade` is a small library that maps container runtime concepts onto an
LXD-style container server. It covers device maps, config key rules, image
lookups and command execution. It opens no connection of its own. You pass it a
server object that talks to your container manager, and it builds the runtime
logic on top of that object.

## Installation

```
pip install lxfacade
```

To install the test tools as well:

```
pip install "lxfacade[test]"
```

## Devices

`lxfacade.devices` converts LXD device option maps into typed dataclasses and
back again:

```python
from lxfacade.devices import Devices, Disk, detect

disk = Disk(path="/var/lib/data", source="/srv/data", readonly=True)
name, options = disk.to_map()
# name == "disk-/var/lib/data"
# options["readonly"] == "true"

proxy = detect("web", {"type": "proxy", "listen": "tcp::80", "connect": "tcp:127.0.0.1:8080"})

devices = Devices()
devices.upsert(disk)
devices.upsert(proxy)   # replaces an existing device with the same name
```

Device classes:

- `Block`, `Char`, `Disk`, `Nic`, `NoneDevice` and `Proxy` are the supported
  device types.
- Each class has `device_name()`, `to_map()` and the class method
  `from_map(name, options)`.

Device names:

- If you do not set `key_name`, the device gets a name derived from its type.
  That name is built from the path, the source, the interface name or the
  listen endpoint.
- `trim_key_name` shortens any name longer than 27 characters. It keeps the
  start and the end of the name and joins them with `--`.

Lookup and collections:

- `detect(name, options)` picks the class from the `type` option. An unknown
  type raises `NotSupportedError`.
- `Devices` is a list that `upsert` keeps unique by device name.

Proxy endpoints:

- `new_proxy_endpoint("tcp:addr:port")` parses an endpoint.
- `new_protocol` parses a protocol name. Only `tcp` and `udp` are accepted.
- A malformed endpoint, protocol or port raises `NotValidError`.
- Both `NotSupportedError` and `NotValidError` derive from `DeviceError`.

## Configuration stores

`lxfacade.configstore.ConfigStore` is an immutable set of rules for reserved
config keys:

```python
from lxfacade.configstore import ConfigStore

store = ConfigStore().with_reserved("user.cri").with_reserved_prefixes("user.labels")
store.is_reserved("user.labels.app")                                    # True
store.is_reserved("user.labelsx")                                       # False
store.unreserved_map({"user.cri": "true", "hello": "world"})            # {"hello": "world"}
store.stripped_prefix_map({"user.labels.app": "web"}, "user.labels")    # {"app": "web"}
```

A reserved prefix matches two kinds of key:

- the prefix itself;
- any key that starts with the prefix followed by a dot.

## Images

`lxfacade.image` deals with image lookups and with the `lxe/` aliases that mark
pulled images.

Aliases:

- `lxe_alias("ubuntu:jammy")` returns `"lxe/ubuntu/jammy"`.
- `rev_lxe_alias` strips the `lxe/` prefix again.
- `to_image` turns an `LxdImage` into an `Image`. The result keeps only the
  aliases that carry the `lxe/` prefix, with the prefix removed.

Lookups:

- `get_image_fingerprint` returns the fingerprint an alias points to.
- `get_remote_image_from_alias_or_fingerprint` first tries the name as an
  alias. If the alias is "not found", it looks the name up as a fingerprint.
- `get_local_image_from_alias_or_fingerprint` first tries the `lxe/` alias. If
  that alias is "not found", it looks the name up as a fingerprint.

Aliases on the server and pool usage:

- `ensure_image_alias` creates an alias, or moves an existing alias to a new
  fingerprint. Server failures are raised as `LxfError`.
- `get_fs_pool_usage` returns one `FSPoolUsage` for each storage pool.

Test images:

- `is_critest_image` tells whether an image carries an `lxe/` alias.
- `replace_critest_image` swaps a requested image for the Alpine cloud image
  used in test runs. Images on the default remote are returned unchanged.
- `CritestImageList.to_dict()` gives the mapping for a test images file.

## Executing commands

`lxfacade.execution.exec_command(server, cid, cmd, stdin, stdout, stderr,
interactive, tty, timeout, resize)` runs a command in a container.

- It waits until the server reports that all output has been written, then
  waits for the operation to finish.
- It returns the exit code taken from the operation's `metadata["return"]`. If
  that value is missing or is not a number, it raises `ParseError`.
- A positive `timeout` (in seconds) limits the wait. When the timeout runs out:
  - a SIGTERM signal message is sent over the control socket and the socket is
    closed;
  - `ExecTimeoutError` is raised, with `exit_code` set to `CODE_EXEC_TIMEOUT`.
- `resize` is an optional `queue.Queue` of `TerminalSize` values. Each value is
  sent to the server as a `window-resize` control message. Putting `None` on
  the queue stops the forwarding.
- `ExecSession` holds the control socket. Its `send_resize` and `send_cancel`
  raise `NoControlSocketError` when no socket has been handed over.

## The client

`lxfacade.client.Client(server)` wraps a server object and offers:

- `get_runtime_info()`: a `RuntimeInfo` whose `version` is the server's API
  version with `.0` appended, for example `"1.0"` becomes `"1.0.0"`.
- `get_fs_pool_usage()`.
- `exec(...)`, which calls `exec_command`.
- `get_server()`.
- `set_event_handler(handler)`. This only stores the handler.

## The server object

The server object you pass in is duck-typed. Each function calls only the
methods it needs.

Used by `Client.get_runtime_info`:

- `get_server()` returns a mapping with `"api_version"`.

Used by the image functions:

- `get_image_alias(name)` returns a fingerprint.
- `get_image(fingerprint)` returns an `LxdImage`.
- `get_image_aliases()` returns a mapping from alias name to target.
- `delete_image_alias(name)`.
- `create_image_alias(name, target)`.
- `get_storage_pools()` returns mappings with `"name"` and `"config"`.
- `get_storage_pool_resources(name)` returns a mapping with
  `"space": {"used": ...}` and `"inodes": {"used": ...}`.

Used by command execution:

- `exec_container(cid, request, args)` returns an operation with `wait()` and
  `get()`.
- The server is expected to call `args.control(socket)` when a control socket
  exists. That socket needs `send(text)` and `close(code, reason)`.
- The server is expected to set `args.data_done` once all output has been
  written.

## Errors

`lxfacade.errors` defines the error types:

- `LxfError` is the base class.
- Its subclasses are `NotFoundError`, `ConvertError`, `ParseError`,
  `UsageError` and `MissingETagError`.
- `StatusError(status, message)` stands for an API error response that carries
  an HTTP status code.

`is_not_found_error(err)` returns true when `err`, or an error in its
`__cause__` chain, is a `NotFoundError` or a `StatusError` with status 404.

## What this package does not do

- It does not connect to a container manager socket.
- It does not reconnect or watch the socket.
- It does not subscribe to lifecycle events.
- It does not pull or remove images.
- It does not create, start, stop or delete containers or sandboxes.
- It has no command-line program and no server.

All of these are left to the server object you provide and to the code that
calls this library.