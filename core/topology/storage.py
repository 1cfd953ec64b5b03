# core/topology/storage.py
"""
TopologyStorage: the registry that owns every topology element by identifier.

Relationships between elements are stored as identifiers and resolved through
the storage, so cascading removal never walks an ownership cycle. A NetworkX
MultiGraph mirrors the connectivity (component -> interface ports and
interface <-> interface cables) for path queries and structural validation.

All operations run under one re-entrant lock: mutations are serialized and a
cascade is never observable half-way.
"""
import ipaddress
import json
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union

import networkx as nx

from core.exceptions import IdentifierConflict, NotFound, SerializationError, ValidationError
from core.topology.cable import NetworkCable
from core.topology.component import NetworkComponent
from core.topology.config import CablePolicy, StorageConfig
from core.topology.element import TopologyElement
from core.topology.group import ComponentGroup
from core.topology.interface import BaseInterface, NetworkInterface, VirtualInterface
from core.topology.network import IPConfig, IPNetwork, NetworkRegistry
from core.topology.result import SerializationResult
from core.topology.vlan import VLAN, ColorChooser
from utils.logging_config import get_logger

logger = get_logger(__name__)

InterfaceSpec = Union[str, NetworkInterface]


class TopologyStorage:
    """
    Holds components, interfaces, cables and VLANs of one topology plus the
    component groups they are displayed in.
    """
    def __init__(self, config: Optional[StorageConfig] = None):
        self.config = config or StorageConfig()
        self._lock = threading.RLock()
        self._elements: Dict[str, TopologyElement] = {}
        self._groups: Dict[str, ComponentGroup] = {}
        self._counters: Dict[str, int] = {}
        self._colors = ColorChooser()
        self._networks = NetworkRegistry()
        self.graph = nx.MultiGraph()
        self._reset()

    def _reset(self) -> None:
        self._elements.clear()
        self._groups.clear()
        self._counters.clear()
        self._colors.reset()
        self._networks.clear()
        self.graph = nx.MultiGraph()
        self._groups[self.config.global_group] = ComponentGroup(self.config.global_group)

    def clear(self) -> None:
        """Remove every element, group and IP network; only the global group remains."""
        with self._lock:
            self._reset()
            logger.info("Topology storage cleared.")

    # ------------------------------------------------------------------
    # Component groups
    # ------------------------------------------------------------------
    @property
    def global_group(self) -> str:
        return self.config.global_group

    @property
    def groups(self) -> List[str]:
        with self._lock:
            return list(self._groups)

    def add_group(self, name: str) -> ComponentGroup:
        with self._lock:
            if name in self._groups:
                raise IdentifierConflict(f"Component group '{name}' already exists.")
            group = ComponentGroup(name)
            self._groups[name] = group
            logger.debug("Component group '%s' added", name)
            return group

    def group(self, name: str) -> ComponentGroup:
        with self._lock:
            try:
                return self._groups[name]
            except KeyError:
                raise NotFound(f"Component group '{name}' does not exist.")

    def remove_group(self, name: str) -> None:
        with self._lock:
            group = self.group(name)
            if name == self.config.global_group:
                raise ValidationError(f"The global group '{name}' cannot be removed.")
            if not group.is_empty:
                raise ValidationError(
                    f"Component group '{name}' is not empty: {', '.join(group.members + group.cables)}")
            del self._groups[name]
            logger.debug("Component group '%s' removed", name)

    def _require_group(self, name: str) -> str:
        if name not in self._groups:
            raise ValidationError(f"Component group '{name}' does not exist.")
        return name

    # ------------------------------------------------------------------
    # Registry
    # ------------------------------------------------------------------
    def __contains__(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._elements

    def __len__(self) -> int:
        with self._lock:
            return len(self._elements)

    def lookup(self, identifier: str) -> TopologyElement:
        with self._lock:
            try:
                return self._elements[identifier]
            except KeyError:
                raise NotFound(f"No topology element '{identifier}'.")

    def get(self, identifier: str, default=None) -> Optional[TopologyElement]:
        with self._lock:
            return self._elements.get(identifier, default)

    def elements(self, kind: Optional[str] = None) -> List[TopologyElement]:
        """All registered elements in registration order, optionally of one kind."""
        with self._lock:
            return [e for e in self._elements.values() if kind is None or e.kind == kind]

    def components(self) -> List[NetworkComponent]:
        return self.elements(NetworkComponent.kind)

    def interfaces(self) -> List[BaseInterface]:
        return self.elements(BaseInterface.kind)

    def cables(self) -> List[NetworkCable]:
        return self.elements(NetworkCable.kind)

    def vlans(self) -> List[VLAN]:
        return self.elements(VLAN.kind)

    def _typed(self, identifier: str, cls, what: str):
        element = self.lookup(identifier)
        if not isinstance(element, cls):
            raise ValidationError(f"Element '{identifier}' is not a {what}.")
        return element

    def component(self, identifier: str) -> NetworkComponent:
        return self._typed(identifier, NetworkComponent, "component")

    def interface(self, identifier: str) -> BaseInterface:
        return self._typed(identifier, BaseInterface, "interface")

    def vlan(self, identifier: str) -> VLAN:
        return self._typed(identifier, VLAN, "VLAN")

    def next_identifier(self, prefix: str) -> str:
        """Return the next unused identifier of the form ``<prefix>_<n>``."""
        with self._lock:
            n = self._counters.get(prefix, 0)
            while True:
                n += 1
                candidate = f"{prefix}_{n}"
                if candidate not in self._elements:
                    self._counters[prefix] = n
                    return candidate

    def _check_free(self, identifiers: Sequence[str]) -> None:
        seen = set()
        for identifier in identifiers:
            if identifier in self._elements or identifier in seen:
                logger.warning("Rejected duplicate identifier '%s'", identifier)
                raise IdentifierConflict(f"Identifier '{identifier}' is already in use.")
            seen.add(identifier)

    def _check_fresh_interface(self, iface: BaseInterface) -> None:
        if iface.is_connected:
            raise ValidationError(f"Interface '{iface.identifier}' is already attached to a cable.")
        if iface.is_ip_configured:
            raise ValidationError(f"Interface '{iface.identifier}' already carries IP configurations.")
        for vlan_id in iface.vlans:
            if not isinstance(self._elements.get(vlan_id), VLAN):
                raise ValidationError(f"Interface '{iface.identifier}' refers to unknown VLAN '{vlan_id}'.")

    def _store_interface(self, iface: BaseInterface) -> None:
        self._elements[iface.identifier] = iface
        self.graph.add_node(iface.identifier, kind=iface.kind)
        for vlan_id in iface.vlans:
            self._elements[vlan_id].add_member(iface.identifier)

    def register(self, element: TopologyElement) -> TopologyElement:
        """
        Add a component (with its interfaces), a virtual interface, a cable
        or a VLAN. Every check runs before the first mutation, so a failed
        call leaves the storage unchanged.

        Raises:
            IdentifierConflict if any identifier involved is already in use.
            ValidationError if the element would break a topology invariant.
        """
        with self._lock:
            if isinstance(element, NetworkComponent):
                self._register_component(element)
            elif isinstance(element, VirtualInterface):
                self._register_virtual_interface(element)
            elif isinstance(element, NetworkInterface):
                raise ValidationError(
                    f"Interface '{element.identifier}' must be added through its component.")
            elif isinstance(element, NetworkCable):
                self._register_cable(element)
            elif isinstance(element, VLAN):
                self._register_vlan(element)
            else:
                raise ValidationError(f"Cannot register {element!r}.")
            logger.debug("Registered %s '%s'", element.kind, element.identifier)
            return element

    def _register_component(self, comp: NetworkComponent) -> None:
        if comp.is_removed:
            raise ValidationError(f"Component '{comp.identifier}' was removed and cannot be registered again.")
        group = self._require_group(comp.component_group or self.config.global_group)
        self._check_free([comp.identifier] + [i.identifier for i in comp.interfaces])
        for iface in comp.interfaces:
            self._check_fresh_interface(iface)
        comp._set_group(group)
        self._elements[comp.identifier] = comp
        self.graph.add_node(comp.identifier, kind=comp.kind)
        for iface in comp.interfaces:
            self._store_interface(iface)
            self.graph.add_edge(comp.identifier, iface.identifier, key=iface.identifier, kind="port")
        self._groups[group].add_member(comp.identifier)

    def _register_virtual_interface(self, iface: VirtualInterface) -> None:
        group = self._require_group(iface.component_group or self.config.global_group)
        self._check_free([iface.identifier])
        self._check_fresh_interface(iface)
        iface._set_group(group)
        self._store_interface(iface)
        self._groups[group].add_member(iface.identifier)

    def _register_vlan(self, vlan: VLAN) -> None:
        self._check_free([vlan.identifier])
        for other in self.vlans():
            if other.vlan_id == vlan.vlan_id:
                raise IdentifierConflict(f"VLAN id {vlan.vlan_id} is already used by '{other.identifier}'.")
        self._elements[vlan.identifier] = vlan

    def _register_cable(self, cable: NetworkCable) -> None:
        self._check_free([cable.identifier])
        ends = []
        for endpoint in cable.endpoints:
            iface = self._elements.get(endpoint)
            if not isinstance(iface, BaseInterface):
                raise ValidationError(f"Cable '{cable.identifier}' endpoint '{endpoint}' is not a registered interface.")
            ends.append(iface)
        a, b = ends
        if self.config.cable_policy is CablePolicy.SINGLE:
            for iface in (a, b):
                if iface.is_connected:
                    raise ValidationError(
                        f"Interface '{iface.identifier}' is already attached to cable '{iface.cable}'.")
        else:
            for cable_id in a.cables:
                if self._elements[cable_id].links(a.identifier, b.identifier):
                    raise ValidationError(
                        f"Interfaces '{a.identifier}' and '{b.identifier}' are already linked by '{cable_id}'.")
        if cable.group_name is None:
            cable.group_name = self._cable_group(a, b)
        else:
            self._require_group(cable.group_name)
        a._attach(cable.identifier)
        b._attach(cable.identifier)
        self._elements[cable.identifier] = cable
        self.graph.add_edge(a.identifier, b.identifier, key=cable.identifier, kind="cable")
        self._groups[cable.group_name].add_cable(cable.identifier)

    def _cable_group(self, a: BaseInterface, b: BaseInterface) -> str:
        if a.component_group == b.component_group:
            return a.component_group
        if a.component_group == self.config.global_group:
            return b.component_group
        return a.component_group

    def _discard(self, element: TopologyElement) -> None:
        """Drop ``element`` from the registry and graph. Used by remove_from_topology()."""
        self._elements.pop(element.identifier, None)
        if isinstance(element, NetworkCable):
            if self.graph.has_edge(element.endpoint_a, element.endpoint_b, key=element.identifier):
                self.graph.remove_edge(element.endpoint_a, element.endpoint_b, key=element.identifier)
        elif self.graph.has_node(element.identifier):
            self.graph.remove_node(element.identifier)
        logger.debug("Discarded %s '%s'", element.kind, element.identifier)

    def unregister(self, identifier: str) -> None:
        """
        Remove a component, interface, cable or VLAN together with everything
        that depends on it.

        Raises:
            NotFound if ``identifier`` is not registered.
            ValidationError if the element cannot be removed yet (a VLAN that
            is still assigned to interfaces).
        """
        with self._lock:
            element = self.lookup(identifier)
            if isinstance(element, NetworkInterface):
                owner = self._elements[element.component_id]
                element.remove_from_topology(self)
                owner._release(identifier)
            else:
                element.remove_from_topology(self)
            logger.debug("Unregistered %s '%s'", element.kind, identifier)

    # ------------------------------------------------------------------
    # Attach / detach operations
    # ------------------------------------------------------------------
    def create_component(self, type_name: str, identifier: Optional[str] = None,
                         name: Optional[str] = None, interfaces: Iterable[InterfaceSpec] = (),
                         group: Optional[str] = None, uri: Optional[str] = None,
                         namespace: Optional[str] = None) -> NetworkComponent:
        """
        Instantiate a component by type name and register it.
        Interfaces may be given as NetworkInterface objects or identifiers.
        """
        from components.factory import get_component_class
        comp_cls = get_component_class(type_name)
        with self._lock:
            if identifier is None and uri is None:
                identifier = self.next_identifier(comp_cls.type_name)
            ifaces = [i if isinstance(i, NetworkInterface) else NetworkInterface(i) for i in interfaces]
            comp = comp_cls(identifier, name=name, interfaces=ifaces, group=group,
                            uri=uri, namespace=namespace)
            return self.register(comp)

    def add_interface(self, component_id: str, interface: Optional[InterfaceSpec] = None) -> NetworkInterface:
        """Create or adopt an interface on a registered component."""
        with self._lock:
            comp = self.component(component_id)
            if interface is None:
                interface = self.next_identifier("interface")
            iface = interface if isinstance(interface, NetworkInterface) else NetworkInterface(interface)
            self._require_group(comp.component_group)
            self._check_free([iface.identifier])
            self._check_fresh_interface(iface)
            comp._adopt(iface)
            self._store_interface(iface)
            self.graph.add_edge(comp.identifier, iface.identifier, key=iface.identifier, kind="port")
            logger.debug("Interface '%s' added to component '%s'", iface.identifier, component_id)
            return iface

    def remove_interface(self, component_id: str, interface_id: str) -> None:
        with self._lock:
            comp = self.component(component_id)
            comp.interface(interface_id)
            self.unregister(interface_id)

    def add_virtual_interface(self, identifier: Optional[str] = None,
                              group: Optional[str] = None) -> VirtualInterface:
        with self._lock:
            if identifier is None:
                identifier = self.next_identifier("vinterface")
            return self.register(VirtualInterface(identifier, group=group))

    def connect(self, endpoint_a: str, endpoint_b: str, identifier: Optional[str] = None) -> NetworkCable:
        """Create a cable between two registered interfaces."""
        with self._lock:
            if identifier is None:
                identifier = self.next_identifier(NetworkCable.type_name)
            return self.register(NetworkCable(identifier, endpoint_a, endpoint_b))

    def create_vlan(self, name: Optional[str] = None, color: Optional[str] = None,
                    vlan_id: Optional[int] = None, identifier: Optional[str] = None,
                    uri: Optional[str] = None, namespace: Optional[str] = None) -> VLAN:
        with self._lock:
            if vlan_id is None:
                vlan_id = max((v.vlan_id for v in self.vlans()), default=0) + 1
            vlan = VLAN(vlan_id, identifier, name=name,
                        color=color if color is not None else self._colors.next_color(),
                        uri=uri, namespace=namespace)
            return self.register(vlan)

    def assign_vlan(self, interface_id: str, vlan_id: str) -> None:
        with self._lock:
            iface = self.interface(interface_id)
            vlan = self.vlan(vlan_id)
            iface.vlans.add(vlan.identifier)
            vlan.add_member(iface.identifier)

    def unassign_vlan(self, interface_id: str, vlan_id: str) -> None:
        with self._lock:
            iface = self.interface(interface_id)
            vlan = self.vlan(vlan_id)
            if vlan.identifier not in iface.vlans:
                raise NotFound(f"Interface '{interface_id}' is not assigned to VLAN '{vlan_id}'.")
            iface.vlans.discard(vlan.identifier)
            vlan.remove_member(iface.identifier)

    def move_to_group(self, identifier: str, group: str) -> None:
        """
        Move a component or virtual interface to another group. Cables on the
        moved interfaces are re-assigned to their resolved display group.
        """
        with self._lock:
            element = self.lookup(identifier)
            if isinstance(element, NetworkComponent):
                ifaces = element.interfaces
            elif isinstance(element, VirtualInterface):
                ifaces = [element]
            else:
                raise ValidationError(f"Element '{identifier}' cannot be assigned to a group.")
            self._require_group(group)
            old = element.component_group
            if old == group:
                return
            self._groups[old].remove_member(identifier)
            element._set_group(group)
            self._groups[group].add_member(identifier)
            for iface in ifaces:
                for cable_id in iface.cables:
                    cable = self._elements[cable_id]
                    self._groups[cable.group_name].remove_cable(cable_id)
                    cable.group_name = self._cable_group(self._elements[cable.endpoint_a],
                                                         self._elements[cable.endpoint_b])
                    self._groups[cable.group_name].add_cable(cable_id)
            logger.debug("Group assigned: %s -> %s", identifier, group)

    # ------------------------------------------------------------------
    # IP networks
    # ------------------------------------------------------------------
    def create_network(self, address: str, prefix_length: int) -> IPNetwork:
        """
        Create an IP network, or return the existing one with the same
        address and prefix length.

        Raises:
            ValidationError if the address is already used by a network with
            another prefix length.
        """
        with self._lock:
            return self._networks.create(address, prefix_length)

    def network(self, address: str) -> IPNetwork:
        with self._lock:
            return self._networks.get(address)

    def networks(self) -> List[IPNetwork]:
        with self._lock:
            return list(self._networks)

    def configure_ip(self, interface_id: str, network_address: str,
                     address: Optional[str] = None) -> IPConfig:
        """
        Configure an address of a registered network on an interface. Without
        ``address`` the lowest free host address of the network is used.
        """
        with self._lock:
            iface = self.interface(interface_id)
            net = self.network(network_address)
            if address is None:
                address = net.free_address()
                if address is None:
                    raise ValidationError(f"Network '{net}' has no free address left.")
            conf = IPConfig(net.reserve(address), net)
            iface._configure_ip(conf)
            logger.debug("Configured %s on interface '%s'", conf.address, interface_id)
            return conf

    def remove_ip_config(self, interface_id: str, address: str) -> None:
        with self._lock:
            iface = self.interface(interface_id)
            try:
                wanted = ipaddress.ip_address(address)
            except ValueError:
                raise ValidationError(f"Invalid IP address: {address!r}")
            for conf in iface.ip_configs:
                if conf.address == wanted:
                    iface._remove_ip_config(conf)
                    return
            raise NotFound(f"Interface '{interface_id}' has no IP configuration '{address}'.")

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def find_path(self, source: str, target: str) -> List[str]:
        """
        Shortest chain of element identifiers linking ``source`` to ``target``
        through ports and cables. Returns an empty list if they are not
        connected.
        """
        with self._lock:
            for identifier in (source, target):
                if not self.graph.has_node(identifier):
                    raise NotFound(f"No component or interface '{identifier}'.")
            try:
                return nx.shortest_path(self.graph, source, target)
            except nx.NetworkXNoPath:
                return []

    def validate(self, verbose: bool = True) -> None:
        """
        Check every referential invariant of the storage and raise a single
        ValidationError listing all violations.
        """
        errors = []
        with self._lock:
            for identifier, element in self._elements.items():
                if identifier != element.identifier:
                    errors.append(f"Element registered as '{identifier}' reports identifier '{element.identifier}'.")
                if isinstance(element, NetworkComponent):
                    if element.component_group not in self._groups:
                        errors.append(f"Component '{identifier}' is in unknown group '{element.component_group}'.")
                    elif identifier not in self._groups[element.component_group]:
                        errors.append(f"Component '{identifier}' is missing from group '{element.component_group}'.")
                    for iface in element.interfaces:
                        if self._elements.get(iface.identifier) is not iface:
                            errors.append(f"Interface '{iface.identifier}' of '{identifier}' is not registered.")
                elif isinstance(element, BaseInterface):
                    errors.extend(self._interface_errors(element))
                elif isinstance(element, NetworkCable):
                    errors.extend(self._cable_errors(element))
                elif isinstance(element, VLAN):
                    for iface_id in element.interfaces:
                        iface = self._elements.get(iface_id)
                        if not isinstance(iface, BaseInterface) or identifier not in iface.vlans:
                            errors.append(f"VLAN '{identifier}' lists unknown interface '{iface_id}'.")
            for name, group in self._groups.items():
                for member in group.members + group.cables:
                    if member not in self._elements:
                        errors.append(f"Group '{name}' references unknown element '{member}'.")
            expected_nodes = {i for i, e in self._elements.items() if not isinstance(e, (NetworkCable, VLAN))}
            if set(self.graph.nodes) != expected_nodes:
                errors.append("Graph inconsistency: graph nodes do not match registered components and interfaces.")
        if errors:
            logger.error("Topology validation failed with %d error(s)", len(errors))
            raise ValidationError("Topology validation failed: " + "; ".join(errors))
        if verbose:
            logger.info("Topology validation passed with no errors.")

    def _interface_errors(self, iface: BaseInterface) -> List[str]:
        errors = []
        if iface.component_group not in self._groups:
            errors.append(f"Interface '{iface.identifier}' is in unknown group '{iface.component_group}'.")
        elif iface.is_virtual and iface.identifier not in self._groups[iface.component_group]:
            errors.append(f"Virtual interface '{iface.identifier}' is missing from group '{iface.component_group}'.")
        if iface.is_virtual:
            if iface.component_id is not None:
                errors.append(f"Virtual interface '{iface.identifier}' has an owning component.")
        else:
            owner = self._elements.get(iface.component_id)
            if not isinstance(owner, NetworkComponent) or not owner.owns(iface.identifier):
                errors.append(f"Interface '{iface.identifier}' has no registered owner '{iface.component_id}'.")
        if self.config.cable_policy is CablePolicy.SINGLE and len(iface.cables) > 1:
            errors.append(f"Interface '{iface.identifier}' has more than one cable.")
        for cable_id in iface.cables:
            cable = self._elements.get(cable_id)
            if not isinstance(cable, NetworkCable) or iface.identifier not in cable.endpoints:
                errors.append(f"Interface '{iface.identifier}' refers to unknown cable '{cable_id}'.")
        for vlan_id in iface.vlans:
            vlan = self._elements.get(vlan_id)
            if not isinstance(vlan, VLAN) or iface.identifier not in vlan.interfaces:
                errors.append(f"Interface '{iface.identifier}' refers to unknown VLAN '{vlan_id}'.")
        for conf in iface.ip_configs:
            if conf.network not in self._networks or not conf.network.is_in_use(conf.address):
                errors.append(f"Interface '{iface.identifier}' has address {conf.address} outside any registered network.")
        return errors

    def _cable_errors(self, cable: NetworkCable) -> List[str]:
        errors = []
        if cable.endpoint_a == cable.endpoint_b:
            errors.append(f"Self-connection detected on cable '{cable.identifier}'.")
        for endpoint in cable.endpoints:
            iface = self._elements.get(endpoint)
            if not isinstance(iface, BaseInterface) or cable.identifier not in iface.cables:
                errors.append(f"Cable '{cable.identifier}' refers to unknown interface '{endpoint}'.")
        if cable.group_name not in self._groups:
            errors.append(f"Cable '{cable.identifier}' is in unknown group '{cable.group_name}'.")
        elif cable.identifier not in self._groups[cable.group_name]:
            errors.append(f"Cable '{cable.identifier}' is missing from group '{cable.group_name}'.")
        return errors

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------
    @staticmethod
    def _project(element: TopologyElement) -> Dict[str, Any]:
        try:
            fragment = element.to_json()
            json.dumps(fragment)
        except SerializationError:
            raise
        except Exception as exc:
            raise SerializationError(element.identifier, str(exc)) from exc
        return fragment

    def serialize(self) -> SerializationResult:
        """
        Build the topology document: group name -> list of projections
        (components with their interfaces, then virtual interfaces, then the
        cables displayed in the group). Never mutates the storage; the whole
        build is abandoned on the first failing projection.
        """
        with self._lock:
            document: Dict[str, List[Dict[str, Any]]] = {}
            try:
                for name, group in self._groups.items():
                    members = [self._elements[m] for m in group.members]
                    entries = [self._project(m) for m in members if isinstance(m, NetworkComponent)]
                    entries += [self._project(m) for m in members if not isinstance(m, NetworkComponent)]
                    entries += [self._project(self._elements[c]) for c in group.cables]
                    document[name] = entries
            except SerializationError as exc:
                logger.error("Topology serialization failed for '%s': %s", exc.identifier, exc)
                return SerializationResult.failure(exc)
            return SerializationResult.success(document)

    def __repr__(self) -> str:
        return f"<TopologyStorage elements={len(self._elements)} groups={len(self._groups)}>"
