# core/topology_serializer.py
import json

import yaml

def to_json_dict(storage) -> dict:
    """
    Build the exported JSON document of a topology.

    Args:
        storage: The TopologyStorage object.

    Returns:
        A dictionary with the per-group projections, the VLAN list and the
        IP networks.

    Raises:
        SerializationError: If any element projection fails.
    """
    return {
        "groups": storage.serialize().unwrap(),
        "vlans": [vlan.to_json() for vlan in storage.vlans()],
        "networks": [net.to_json() for net in storage.networks()],
    }

def to_json_file(storage, path: str) -> None:
    """
    Write the storage's JSON document to a file.
    Nothing is written if serialization fails.
    """
    document = to_json_dict(storage)
    with open(path, "w") as f:
        json.dump(document, f, indent=2)

def _with_uri(entry: dict, element) -> dict:
    if element.uri is not None:
        entry["uri"] = element.uri
    return entry

def to_yaml_dict(storage) -> dict:
    """
    Convert the storage to a topology description that
    inout.topology_loader.build_topology accepts.

    Args:
        storage: The TopologyStorage object.

    Returns:
        A dictionary containing groups, networks, VLANs, components, virtual
        interfaces and cables.
    """
    def iface_dict(iface):
        entry = _with_uri({"id": iface.identifier}, iface)
        entry["orientation"] = iface.orientation.value
        entry["vlans"] = sorted(iface.vlans)
        if iface.is_ip_configured:
            entry["ip"] = [{"network": conf.network.address, "address": str(conf.address)}
                           for conf in iface.ip_configs]
        return entry

    return {
        "groups": [name for name in storage.groups if name != storage.global_group],
        "networks": [
            {"address": net.address, "prefix": net.prefix_length}
            for net in storage.networks()
        ],
        "vlans": [
            _with_uri({"id": v.identifier, "vlan_id": v.vlan_id, "name": v.name, "color": v.color}, v)
            for v in storage.vlans()
        ],
        "components": [
            _with_uri({
                "id": comp.identifier,
                "type": comp.type_name,
                "name": comp.name,
                "group": comp.component_group,
                "interfaces": [iface_dict(i) for i in comp.interfaces],
            }, comp)
            for comp in storage.components()
        ],
        "virtual_interfaces": [
            {**iface_dict(i), "group": i.component_group}
            for i in storage.interfaces() if i.is_virtual
        ],
        "cables": [
            {"id": c.identifier, "a": c.endpoint_a, "b": c.endpoint_b}
            for c in storage.cables()
        ],
    }

def to_yaml_file(storage, path: str) -> None:
    """
    Write the storage's topology description to a YAML file.
    """
    with open(path, "w") as f:
        yaml.safe_dump(to_yaml_dict(storage), f, sort_keys=False)
