# inout/topology_loader.py
"""
Load and validate YAML topology descriptions into a TopologyStorage.
Everything is registered through the storage's public contract, so a
description that violates a topology invariant fails like any other caller.
"""
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import yaml
from cerberus import Validator

from core.exceptions import ValidationError
from core.topology.config import StorageConfig
from core.topology.interface import NetworkInterface, VirtualInterface
from core.topology.storage import TopologyStorage
from utils.logging_config import get_logger

logger = get_logger(__name__)

_ORIENTATIONS = ["top", "bottom", "left", "right"]

_INTERFACE_SCHEMA: Dict[str, Any] = {
    "id":          {"type": "string", "required": False, "empty": False},
    "uri":         {"type": "string", "required": False, "empty": False},
    "orientation": {"type": "string", "required": False, "allowed": _ORIENTATIONS},
    "vlans":       {"type": "list", "required": False, "schema": {"type": "string"}},
    "ip": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict", "schema": {
                "network": {"type": "string", "required": True, "empty": False},
                "address": {"type": "string", "required": False, "empty": False},
            },
        },
    },
}

# Schema for topology descriptions
TOPOLOGY_SCHEMA: Dict[str, Any] = {
    "namespace": {"type": "string", "required": False, "empty": False},

    "groups": {
        "type": "list", "required": False,
        "schema": {"type": "string", "empty": False},
    },

    "networks": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict", "schema": {
                "address": {"type": "string", "required": True, "empty": False},
                "prefix":  {"type": "integer", "required": True, "min": 0},
            },
        },
    },

    "vlans": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict", "schema": {
                "id":      {"type": "string", "required": False, "empty": False},
                "uri":     {"type": "string", "required": False, "empty": False},
                "vlan_id": {"type": "integer", "required": False, "min": 0},
                "name":    {"type": "string", "required": False, "empty": False},
                "color":   {"type": "string", "required": False, "regex": r"#[a-fA-F0-9]{6}"},
            },
        },
    },

    "components": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict", "schema": {
                "id":    {"type": "string", "required": False, "empty": False},
                "uri":   {"type": "string", "required": False, "empty": False},
                "type":  {"type": "string", "required": True},
                "name":  {"type": "string", "required": False, "empty": False},
                "group": {"type": "string", "required": False, "empty": False},
                "interfaces": {
                    "type": "list", "required": False,
                    "schema": {"type": "dict", "schema": _INTERFACE_SCHEMA},
                },
            },
        },
    },

    "virtual_interfaces": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict",
            "schema": {**_INTERFACE_SCHEMA, "group": {"type": "string", "required": False, "empty": False}},
        },
    },

    "cables": {
        "type": "list", "required": False,
        "schema": {
            "type": "dict", "schema": {
                "id": {"type": "string", "required": False, "empty": False},
                "a":  {"type": "string", "required": True, "empty": False},
                "b":  {"type": "string", "required": True, "empty": False},
            },
        },
    },
}


def _rdf_args(entry: Dict[str, Any], namespace: Optional[str], kind: str) -> Dict[str, Any]:
    """
    Identifier arguments of an entry. An explicit 'id' is the local name;
    otherwise it is resolved from 'uri'. The URI is kept either way.
    """
    if "id" not in entry and "uri" not in entry:
        raise ValidationError(f"A {kind} entry needs an 'id' or a 'uri'.")
    uri = entry.get("uri")
    return {
        "identifier": entry.get("id"),
        "uri": uri,
        "namespace": namespace if uri is not None and "id" not in entry else None,
    }


def _interfaces(entries: List[Dict[str, Any]], namespace: Optional[str]) -> List[NetworkInterface]:
    return [
        NetworkInterface(orientation=e.get("orientation", "bottom"),
                         vlans=e.get("vlans", []),
                         **_rdf_args(e, namespace, "interface"))
        for e in entries
    ]


def validate_schema(data: Any) -> Dict[str, Any]:
    """
    Validate a topology description against TOPOLOGY_SCHEMA.

    Raises:
        ValidationError: If the document does not match the schema.
    """
    if not isinstance(data, dict):
        raise ValidationError("Topology description must be a mapping.")
    validator = Validator(TOPOLOGY_SCHEMA, allow_unknown=False)
    if not validator.validate(data):
        logger.error("Topology schema validation errors: %s", validator.errors)
        raise ValidationError(f"Topology schema violations: {validator.errors}")
    return validator.document


def build_topology(data: Any, config: Optional[StorageConfig] = None) -> TopologyStorage:
    """
    Build a new TopologyStorage from an already parsed description.
    Groups, IP networks and VLANs are created first, then components,
    virtual interfaces and cables. IP addresses are configured last.
    """
    doc = validate_schema(data)
    namespace = doc.get("namespace")
    storage = TopologyStorage(config)
    addressing: List[Tuple[str, List[Dict[str, Any]]]] = []

    for name in doc.get("groups", []):
        if name != storage.global_group:
            storage.add_group(name)

    for ndoc in doc.get("networks", []):
        storage.create_network(ndoc["address"], ndoc["prefix"])

    for vdoc in doc.get("vlans", []):
        rdf = _rdf_args(vdoc, namespace, "VLAN") if ("id" in vdoc or "uri" in vdoc) else {}
        storage.create_vlan(name=vdoc.get("name"), color=vdoc.get("color"),
                            vlan_id=vdoc.get("vlan_id"), **rdf)

    for cdoc in doc.get("components", []):
        ifaces = _interfaces(cdoc.get("interfaces", []), namespace)
        storage.create_component(cdoc["type"], name=cdoc.get("name"), interfaces=ifaces,
                                 group=cdoc.get("group"), **_rdf_args(cdoc, namespace, "component"))
        addressing += [(iface.identifier, idoc.get("ip", []))
                       for iface, idoc in zip(ifaces, cdoc.get("interfaces", []))]

    for idoc in doc.get("virtual_interfaces", []):
        iface = storage.register(VirtualInterface(group=idoc.get("group"),
                                                  orientation=idoc.get("orientation", "bottom"),
                                                  vlans=idoc.get("vlans", []),
                                                  **_rdf_args(idoc, namespace, "virtual interface")))
        addressing.append((iface.identifier, idoc.get("ip", [])))

    for cable in doc.get("cables", []):
        storage.connect(cable["a"], cable["b"], identifier=cable.get("id"))

    for interface_id, entries in addressing:
        for entry in entries:
            storage.configure_ip(interface_id, entry["network"], entry.get("address"))

    logger.info("Loaded topology with %d elements in %d groups", len(storage), len(storage.groups))
    return storage


def load_topology(path: Union[str, Path], config: Optional[StorageConfig] = None) -> TopologyStorage:
    """Read, validate and build a YAML topology description."""
    try:
        raw = yaml.safe_load(Path(path).read_text())
    except (OSError, yaml.YAMLError) as exc:
        raise ValidationError(f"Failed to read YAML '{path}': {exc}")
    return build_topology(raw, config)
