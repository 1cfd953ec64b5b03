import pytest
from core.exceptions import IdentifierConflict, NotFound, ValidationError
from core.topology.interface import VirtualInterface
from core.topology.network import IPNetwork

def test_network_basics():
    net = IPNetwork("192.168.1.0", 24)
    assert net.address == "192.168.1.0"
    assert net.prefix_length == 24
    assert net.version == 4
    assert str(net) == "192.168.1.0/24"
    assert net.to_json() == {"address": "192.168.1.0", "subnetMask": 24, "version": 4}

def test_network_rejects_host_bits_and_bad_prefix():
    with pytest.raises(ValidationError, match="Invalid IP network"):
        IPNetwork("192.168.1.5", 24)
    with pytest.raises(ValidationError, match="Invalid IP network"):
        IPNetwork("192.168.1.0", 33)
    with pytest.raises(ValidationError, match="Invalid prefix length"):
        IPNetwork("192.168.1.0", "24")

def test_network_address_range():
    net = IPNetwork("10.0.0.0", 30)
    assert net.parse("10.0.0.1").exploded == "10.0.0.1"
    for outside in ("10.0.0.0", "10.0.0.3", "10.0.0.4"):
        with pytest.raises(ValidationError, match="not in the address range"):
            net.parse(outside)
    with pytest.raises(ValidationError, match="mismatch"):
        net.parse("fe80::1")
    with pytest.raises(ValidationError, match="Invalid IP address"):
        net.parse("10.0.0.x")

def test_free_address_skips_used():
    net = IPNetwork("10.0.0.0", 30)
    assert net.free_address() == "10.0.0.1"
    net.reserve("10.0.0.1")
    assert net.free_address() == "10.0.0.2"
    net.reserve("10.0.0.2")
    assert net.free_address() is None

def test_create_network_returns_existing(storage):
    first = storage.create_network("10.0.0.0", 24)
    assert storage.create_network("10.0.0.0", 24) is first
    assert storage.network("10.0.0.0") is first
    assert storage.networks() == [first]

def test_create_network_prefix_conflict(storage):
    storage.create_network("10.0.0.0", 24)
    with pytest.raises(ValidationError, match="already exists with prefix length 24"):
        storage.create_network("10.0.0.0", 16)
    assert storage.network("10.0.0.0").prefix_length == 24

def test_unknown_network(storage):
    with pytest.raises(NotFound, match="No IP network"):
        storage.network("10.9.9.0")
    with pytest.raises(NotFound):
        storage.network("not-an-address")

def test_configure_ip(linked_storage):
    net = linked_storage.create_network("192.168.0.0", 24)
    conf = linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.20")
    auto = linked_storage.configure_ip("dev1:eth0", "192.168.0.0")
    assert str(auto.address) == "192.168.0.1"
    iface = linked_storage.lookup("dev2:eth0")
    assert iface.is_ip_configured
    assert iface.ip_configs == (conf,)
    assert net.addresses_in_use == ["192.168.0.20", "192.168.0.1"]
    assert iface.to_json()["ipConfig"] == [{
        "address": "192.168.0.20", "subnet": 24, "version": 4,
        "network": {"address": "192.168.0.0", "subnetMask": 24, "version": 4},
        "isLinkLocal": False,
    }]
    linked_storage.validate(verbose=False)

def test_configure_duplicate_address(linked_storage):
    linked_storage.create_network("192.168.0.0", 24)
    linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.20")
    with pytest.raises(IdentifierConflict, match="already in use"):
        linked_storage.configure_ip("dev1:eth0", "192.168.0.0", "192.168.0.20")
    assert not linked_storage.lookup("dev1:eth0").is_ip_configured

def test_configure_ip_on_full_network(linked_storage):
    linked_storage.create_network("10.0.0.0", 31)
    linked_storage.configure_ip("dev1:eth0", "10.0.0.0")
    linked_storage.configure_ip("dev1:eth1", "10.0.0.0")
    with pytest.raises(ValidationError, match="no free address"):
        linked_storage.configure_ip("dev2:eth0", "10.0.0.0")

def test_link_local_ipv6(storage):
    storage.register(VirtualInterface("v0"))
    storage.create_network("fe80::", 64)
    conf = storage.configure_ip("v0", "fe80::", "fe80::1")
    assert conf.is_link_local
    assert conf.to_json()["version"] == 6

def test_remove_ip_config_releases_address(linked_storage):
    net = linked_storage.create_network("192.168.0.0", 24)
    linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.20")
    linked_storage.remove_ip_config("dev2:eth0", "192.168.0.20")
    assert not linked_storage.lookup("dev2:eth0").is_ip_configured
    assert net.addresses_in_use == []
    with pytest.raises(NotFound, match="has no IP configuration"):
        linked_storage.remove_ip_config("dev2:eth0", "192.168.0.20")

def test_interface_removal_releases_addresses(linked_storage):
    net = linked_storage.create_network("192.168.0.0", 24)
    linked_storage.configure_ip("dev1:eth0", "192.168.0.0", "192.168.0.10")
    linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.20")
    iface = linked_storage.lookup("dev1:eth0")
    linked_storage.unregister("dev1")
    assert iface.ip_configs == ()
    assert net.addresses_in_use == ["192.168.0.20"]
    linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.10")
    linked_storage.validate(verbose=False)

def test_clear_drops_networks(linked_storage):
    linked_storage.create_network("192.168.0.0", 24)
    linked_storage.clear()
    assert linked_storage.networks() == []

def test_validate_detects_foreign_network(linked_storage):
    linked_storage.create_network("192.168.0.0", 24)
    linked_storage.configure_ip("dev2:eth0", "192.168.0.0", "192.168.0.20")
    linked_storage._networks.clear()
    with pytest.raises(ValidationError, match="outside any registered network"):
        linked_storage.validate(verbose=False)
