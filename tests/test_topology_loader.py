import pytest
from core.exceptions import IdentifierConflict, ValidationError
from core.topology.config import CablePolicy, StorageConfig
from inout.topology_loader import build_topology, load_topology, validate_schema

TOPOLOGY_YAML = """
namespace: "http://example.org/ns#"
groups: [core, edge]
vlans:
  - id: vlan_mgmt
    vlan_id: 10
    name: Mgmt
    color: "#FF0000"
components:
  - id: dev1
    type: switch
    name: Core switch
    group: core
    interfaces:
      - id: dev1:eth0
        orientation: top
        vlans: [vlan_mgmt]
      - id: dev1:eth1
  - uri: "http://example.org/ns#dev2"
    type: host
    group: edge
    interfaces:
      - uri: "http://example.org/ns#dev2-eth0"
virtual_interfaces:
  - id: v0
    group: core
cables:
  - id: cableA
    a: dev1:eth0
    b: dev2-eth0
  - a: dev1:eth1
    b: v0
"""

def test_load_topology(tmp_path):
    file = tmp_path / "topology.yaml"
    file.write_text(TOPOLOGY_YAML)
    storage = load_topology(file)
    assert storage.groups == [storage.global_group, "core", "edge"]
    assert storage.lookup("dev1").name == "Core switch"
    assert storage.lookup("dev2").component_group == "edge"
    assert storage.lookup("dev2-eth0").cable == "cableA"
    assert storage.lookup("dev1:eth0").orientation.value == "top"
    assert storage.vlan("vlan_mgmt").interfaces == ["dev1:eth0"]
    assert storage.lookup("v0").cable == "ncable_1"
    assert storage.lookup("cableA").group_name == "core"
    storage.validate(verbose=False)

def test_load_topology_with_config(tmp_path):
    file = tmp_path / "topology.yaml"
    file.write_text(TOPOLOGY_YAML)
    storage = load_topology(file, StorageConfig(cable_policy=CablePolicy.MULTI))
    assert storage.config.cable_policy is CablePolicy.MULTI

def test_missing_file(tmp_path):
    with pytest.raises(ValidationError, match="Failed to read YAML"):
        load_topology(tmp_path / "missing.yaml")

def test_invalid_yaml(tmp_path):
    file = tmp_path / "bad.yaml"
    file.write_text("components: [unclosed")
    with pytest.raises(ValidationError, match="Failed to read YAML"):
        load_topology(file)

def test_schema_violation():
    with pytest.raises(ValidationError, match="Topology schema violations"):
        validate_schema({"components": [{"id": "dev1"}]})

def test_unknown_key():
    with pytest.raises(ValidationError):
        validate_schema({"routers": []})

def test_bad_orientation():
    with pytest.raises(ValidationError):
        validate_schema({"components": [{"id": "d", "type": "host", "interfaces": [{"id": "i", "orientation": "up"}]}]})

def test_not_a_mapping():
    with pytest.raises(ValidationError, match="must be a mapping"):
        build_topology(["a", "b"])

def test_entry_without_id_or_uri():
    with pytest.raises(ValidationError, match="needs an 'id' or a 'uri'"):
        build_topology({"components": [{"type": "host"}]})

def test_uri_outside_namespace():
    data = {"namespace": "http://example.org/ns#",
            "components": [{"uri": "http://other.org/ns#dev1", "type": "host"}]}
    with pytest.raises(ValidationError, match="is not in namespace"):
        build_topology(data)

def test_duplicate_identifiers():
    data = {"components": [{"id": "dev1", "type": "host"}, {"id": "dev1", "type": "vm"}]}
    with pytest.raises(IdentifierConflict):
        build_topology(data)

def test_cable_policy_enforced():
    data = {
        "components": [{"id": "a", "type": "host", "interfaces": [{"id": "a0"}]},
                       {"id": "b", "type": "host", "interfaces": [{"id": "b0"}, {"id": "b1"}]}],
        "cables": [{"a": "a0", "b": "b0"}, {"a": "a0", "b": "b1"}],
    }
    with pytest.raises(ValidationError, match="already attached"):
        build_topology(data)
    storage = build_topology(data, StorageConfig(cable_policy=CablePolicy.MULTI))
    assert storage.lookup("a0").cables == ("ncable_1", "ncable_2")

def test_empty_description():
    storage = build_topology({})
    assert len(storage) == 0

def test_uri_is_kept(tmp_path):
    file = tmp_path / "topology.yaml"
    file.write_text(TOPOLOGY_YAML)
    storage = load_topology(file)
    assert storage.lookup("dev2").uri == "http://example.org/ns#dev2"
    assert storage.lookup("dev2-eth0").uri == "http://example.org/ns#dev2-eth0"
    assert storage.lookup("dev1").uri is None

def test_explicit_id_wins_over_uri():
    data = {"namespace": "http://example.org/ns#",
            "components": [{"id": "edge-1", "uri": "http://example.org/ns#dev1", "type": "host"}],
            "vlans": [{"uri": "http://example.org/ns#mgmt", "vlan_id": 7}]}
    storage = build_topology(data)
    comp = storage.lookup("edge-1")
    assert comp.uri == "http://example.org/ns#dev1"
    assert storage.vlan("mgmt").uri == "http://example.org/ns#mgmt"

def test_networks_and_addresses():
    data = {
        "networks": [{"address": "192.168.0.0", "prefix": 24}],
        "components": [{"id": "a", "type": "host",
                        "interfaces": [{"id": "a0", "ip": [{"network": "192.168.0.0", "address": "192.168.0.5"}]}]}],
        "virtual_interfaces": [{"id": "v0", "ip": [{"network": "192.168.0.0"}]}],
    }
    storage = build_topology(data)
    assert [str(c.address) for c in storage.lookup("a0").ip_configs] == ["192.168.0.5"]
    assert [str(c.address) for c in storage.lookup("v0").ip_configs] == ["192.168.0.1"]
    assert storage.network("192.168.0.0").addresses_in_use == ["192.168.0.5", "192.168.0.1"]

def test_network_prefix_conflict_in_description():
    data = {"networks": [{"address": "10.0.0.0", "prefix": 24}, {"address": "10.0.0.0", "prefix": 16}]}
    with pytest.raises(ValidationError, match="already exists with prefix length"):
        build_topology(data)
