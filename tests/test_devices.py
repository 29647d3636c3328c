import pytest

from lxfacade.devices import (
    BLOCK_TYPE,
    CHAR_TYPE,
    DISK_TYPE,
    NIC_TYPE,
    NONE_TYPE,
    PROXY_TYPE,
    Block,
    Char,
    Devices,
    Disk,
    Nic,
    NoneDevice,
    NotSupportedError,
    NotValidError,
    Protocol,
    Proxy,
    ProxyEndpoint,
    detect,
    new_protocol,
    new_proxy_endpoint,
    trim_key_name,
)


# --- detect / Devices / trim_key_name ---


def test_detect_unknown_type():
    with pytest.raises(NotSupportedError):
        detect("foo", {"type": "foo"})


def test_detect_known_type():
    assert detect("foo", {"type": "none"}) == NoneDevice(key_name="foo")


def test_detect_proxy():
    dev = detect("p", {"type": "proxy", "listen": "tcp:a:1", "connect": "udp:b:2"})
    assert dev == Proxy(
        key_name="p",
        listen=ProxyEndpoint(Protocol.TCP, "a", 1),
        destination=ProxyEndpoint(Protocol.UDP, "b", 2),
    )


def test_detect_proxy_invalid_endpoint():
    with pytest.raises(NotValidError):
        detect("p", {"type": "proxy", "listen": "tcp:a", "connect": "udp:b:2"})


def test_detect_same_type_multiple():
    m = detect("foo", {"type": "none"})
    n = detect("bar", {"type": "none"})
    assert m != n
    assert m is not n
    assert m.key_name == "foo" and n.key_name == "bar"


def test_devices_upsert_add_multiple():
    d = Devices()
    d.upsert(NoneDevice(key_name="foo"))
    d.upsert(NoneDevice(key_name="bar"))
    assert len(d) == 2


def test_devices_upsert_override():
    d = Devices()
    disk = Disk(key_name="foo")
    d.upsert(NoneDevice(key_name="foo"))
    d.upsert(disk)
    assert len(d) == 1
    assert d[0] is disk


@pytest.mark.parametrize(
    "arg, want",
    [
        ("disk-/var/lib/short", "disk-/var/lib/short"),
        ("disk-/var/lib/something/long", "disk-/var/li--mething/long"),
    ],
)
def test_trim_key_name(arg, want):
    assert trim_key_name(arg) == want


def test_trim_key_name_length_bounded():
    assert len(trim_key_name("x" * 100)) <= 27


# --- Block ---


def test_block_name_key_name():
    assert Block(key_name="foo").device_name() == "foo"


def test_block_name_path_only():
    assert Block(path="/tmp/foo").device_name() == BLOCK_TYPE + "-/tmp/foo"


def test_block_name_source_only():
    assert Block(source="/tmp/bar").device_name() == BLOCK_TYPE + "-/tmp/bar"


def test_block_name_path_and_source():
    assert Block(path="/tmp/foo", source="/tmp/bar").device_name() == BLOCK_TYPE + "-/tmp/foo"


def test_block_name_key_name_priority():
    d = Block(key_name="foo", path="/tmp/foo", source="/tmp/bar")
    assert d.device_name() == "foo"


def test_block_to_map():
    n, m = Block(key_name="foo", path="bar", source="baz").to_map()
    assert n == "foo"
    assert m == {"type": BLOCK_TYPE, "path": "bar", "source": "baz"}


def test_block_from_map():
    raw = {"type": BLOCK_TYPE, "path": "bar", "source": "baz"}
    assert Block.from_map("foo", raw) == Block(key_name="foo", path="bar", source="baz")


# --- Char ---


def test_char_name_key_name():
    assert Char(key_name="foo").device_name() == "foo"


def test_char_name_path_only():
    assert Char(path="/tmp/foo").device_name() == CHAR_TYPE + "-/tmp/foo"


def test_char_name_source_only():
    assert Char(source="/tmp/bar").device_name() == CHAR_TYPE + "-/tmp/bar"


def test_char_name_path_and_source():
    assert Char(path="/tmp/foo", source="/tmp/bar").device_name() == CHAR_TYPE + "-/tmp/foo"


def test_char_name_key_name_priority():
    d = Char(key_name="foo", path="/tmp/foo", source="/tmp/bar")
    assert d.device_name() == "foo"


def test_char_to_map():
    n, m = Char(key_name="foo", path="bar", source="baz").to_map()
    assert n == "foo"
    assert m == {"type": CHAR_TYPE, "path": "bar", "source": "baz"}


def test_char_from_map():
    raw = {"type": CHAR_TYPE, "path": "bar", "source": "baz"}
    assert Char.from_map("foo", raw) == Char(key_name="foo", path="bar", source="baz")


# --- Disk ---


def test_disk_name_key_name():
    assert Disk(key_name="foo").device_name() == "foo"


def test_disk_name_path_only():
    assert Disk(path="/tmp/foo").device_name() == DISK_TYPE + "-/tmp/foo"


def test_disk_name_source_only():
    assert Disk(source="/tmp/bar").device_name() == DISK_TYPE + "-/tmp/bar"


def test_disk_name_path_and_source():
    assert Disk(path="/tmp/foo", source="/tmp/bar").device_name() == DISK_TYPE + "-/tmp/foo"


def test_disk_name_key_name_priority():
    d = Disk(key_name="foo", path="/tmp/foo", source="/tmp/bar")
    assert d.device_name() == "foo"


def test_disk_to_map():
    d = Disk(key_name="foo", path="bar", source="baz", pool="pool", size="size",
             readonly=True, optional=True)
    n, m = d.to_map()
    assert n == "foo"
    assert m == {
        "type": DISK_TYPE, "path": "bar", "source": "baz", "pool": "pool",
        "size": "size", "readonly": "true", "optional": "true",
    }


def test_disk_from_map():
    raw = {
        "type": DISK_TYPE, "path": "bar", "source": "baz", "pool": "pool",
        "size": "size", "readonly": "true", "optional": "true",
    }
    exp = Disk(key_name="foo", path="bar", source="baz", pool="pool", size="size",
               readonly=True, optional=True)
    assert Disk.from_map("foo", raw) == exp


def test_disk_round_trip_false_flags():
    d = Disk(key_name="x", path="/p")
    name, options = d.to_map()
    assert options["readonly"] == "false"
    assert Disk.from_map(name, options) == d


# --- Nic ---


def test_nic_name_key_name():
    assert Nic(key_name="foo").device_name() == "foo"


def test_nic_name_name_only():
    assert Nic(name="ethX").device_name() == NIC_TYPE + "-ethX"


def test_nic_name_key_name_priority():
    assert Nic(key_name="foo", name="ethX").device_name() == "foo"


def test_nic_to_map():
    d = Nic(key_name="foo", name="ethX", nic_type="bridge", parent="brX", ipv4_address="1.2.3.4")
    n, m = d.to_map()
    assert n == "foo"
    assert m == {"type": NIC_TYPE, "name": "ethX", "nictype": "bridge",
                 "parent": "brX", "ipv4.address": "1.2.3.4"}


def test_nic_from_map():
    raw = {"type": NIC_TYPE, "name": "ethX", "nictype": "bridge",
           "parent": "brX", "ipv4.address": "1.2.3.4"}
    exp = Nic(key_name="foo", name="ethX", nic_type="bridge", parent="brX", ipv4_address="1.2.3.4")
    assert Nic.from_map("foo", raw) == exp


# --- None ---


def test_none_name_key_name():
    assert NoneDevice(key_name="foo").device_name() == "foo"


def test_none_to_map():
    n, m = NoneDevice(key_name="foo").to_map()
    assert n == "foo"
    assert m == {"type": NONE_TYPE}


def test_none_from_map():
    assert NoneDevice.from_map("foo", {"type": NONE_TYPE}) == NoneDevice(key_name="foo")


# --- Proxy ---


def test_proxy_name_key_name():
    assert Proxy(key_name="foo").device_name() == "foo"


def test_proxy_name_listen_only():
    d = Proxy(listen=ProxyEndpoint(Protocol.TCP, "baz", 22))
    assert d.device_name() == PROXY_TYPE + "-tcp:baz:22"


def test_proxy_name_key_name_priority():
    d = Proxy(key_name="foo", listen=ProxyEndpoint(Protocol.TCP, "baz", 22))
    assert d.device_name() == "foo"


def test_proxy_to_map():
    d = Proxy(key_name="foo", listen=ProxyEndpoint(Protocol.TCP, "baz", 22),
              destination=ProxyEndpoint(Protocol.UDP, "cba", 33))
    n, m = d.to_map()
    assert n == "foo"
    assert m == {"type": PROXY_TYPE, "listen": "tcp:baz:22", "connect": "udp:cba:33"}


def test_proxy_from_map():
    raw = {"type": PROXY_TYPE, "listen": "tcp:baz:22", "connect": "udp:cba:33"}
    exp = Proxy(key_name="foo", listen=ProxyEndpoint(Protocol.TCP, "baz", 22),
                destination=ProxyEndpoint(Protocol.UDP, "cba", 33))
    assert Proxy.from_map("foo", raw) == exp


@pytest.mark.parametrize(
    "text, want",
    [("tcp", Protocol.TCP), ("udp", Protocol.UDP)],
)
def test_new_protocol_valid(text, want):
    assert new_protocol(text) == want


@pytest.mark.parametrize("text", ["", "undefined", "foo"])
def test_new_protocol_invalid(text):
    with pytest.raises(NotValidError):
        new_protocol(text)


@pytest.mark.parametrize(
    "text, want",
    [
        ("tcp:bar:25", ProxyEndpoint(Protocol.TCP, "bar", 25)),
        ("udp:baz:35", ProxyEndpoint(Protocol.UDP, "baz", 35)),
    ],
)
def test_new_proxy_endpoint_valid(text, want):
    assert new_proxy_endpoint(text) == want


@pytest.mark.parametrize(
    "text",
    ["", "foo:bar:baz", "foo:bar", "foo:25", "foo:bar:25", ":baz:35", "udp:baz:foo"],
)
def test_new_proxy_endpoint_invalid(text):
    with pytest.raises(NotValidError):
        new_proxy_endpoint(text)


def test_proxy_endpoint_str_round_trip():
    assert str(new_proxy_endpoint("udp:10.0.0.1:8080")) == "udp:10.0.0.1:8080"