# core/topology/component.py
import logging
import re
from typing import Any, Dict, Iterable, List, Optional

from core.exceptions import NotFound, ValidationError
from core.identifiers import RDFObject
from core.topology.element import RemovableElement, TopologyElement
from core.topology.interface import NetworkInterface

logger = logging.getLogger(__name__)

_ID_PLACEHOLDER = "$ID$"
_TRAILING_NUMBER = re.compile(r"(\d+)$")


class NetworkComponent(TopologyElement, RemovableElement, RDFObject):
    """
    Base class for network devices.
    A component exclusively owns an ordered set of NetworkInterface objects
    and belongs to one component group, referenced by name.
    Subclasses override `type_name` and `default_name`.
    """
    kind = "component"
    type_name: str = "undefined"  # Override in subclasses
    default_name: str = "Component $ID$"

    def __init__(self, identifier: Optional[str] = None, name: Optional[str] = None,
                 interfaces: Iterable[NetworkInterface] = (), group: Optional[str] = None,
                 uri: Optional[str] = None, namespace: Optional[str] = None) -> None:
        """
        Args:
            identifier: Local name of the component. Derived from ``uri`` if omitted.
            name: Human readable name; ``$ID$`` is replaced by the numeric part
                of the identifier. Defaults to the class' ``default_name``.
            interfaces: Interfaces owned by the component, in display order.
            group: Component group name; the storage's global group if None.
            uri: Optional RDF resource URI the local name is resolved from.
            namespace: Namespace of ``uri``.
        """
        RDFObject.__init__(self, identifier, uri, namespace)
        TopologyElement.__init__(self, self.rdf_local_name)
        self.name = name if name is not None else self.default_name
        self._component_group = group
        self._interfaces: Dict[str, NetworkInterface] = {}
        self._removed = False
        for iface in interfaces:
            self._adopt(iface)

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise ValidationError(f"Component '{self.identifier}' needs a non-empty name.")
        match = _TRAILING_NUMBER.search(self.identifier)
        self._name = value.replace(_ID_PLACEHOLDER, match.group(1) if match else self.identifier)

    @property
    def component_group(self) -> Optional[str]:
        return self._component_group

    @property
    def is_removed(self) -> bool:
        """True once the component was removed; it cannot be registered again."""
        return self._removed

    @property
    def interfaces(self) -> List[NetworkInterface]:
        return list(self._interfaces.values())

    def interface(self, interface_id: str) -> NetworkInterface:
        try:
            return self._interfaces[interface_id]
        except KeyError:
            raise NotFound(f"Component '{self.identifier}' has no interface '{interface_id}'.")

    def owns(self, interface_id: str) -> bool:
        return interface_id in self._interfaces

    def _adopt(self, iface: NetworkInterface) -> None:
        if not isinstance(iface, NetworkInterface):
            raise ValidationError(f"Component '{self.identifier}' can only own real interfaces, got {iface!r}.")
        if iface.identifier in self._interfaces or iface.identifier == self.identifier:
            raise ValidationError(f"Component '{self.identifier}' has duplicate interface '{iface.identifier}'.")
        iface._bind(self.identifier, self._component_group)
        self._interfaces[iface.identifier] = iface

    def _release(self, interface_id: str) -> None:
        self._interfaces.pop(interface_id, None)

    def _set_group(self, group: str) -> None:
        self._component_group = group
        for iface in self._interfaces.values():
            iface._bind(self.identifier, group)

    def remove_from_topology(self, storage) -> None:
        # Cables first, then interfaces, then the component itself.
        for iface in self._interfaces.values():
            for cable_id in iface.cables:
                storage.lookup(cable_id).remove_from_topology(storage)
        for iface in list(self._interfaces.values()):
            iface.remove_from_topology(storage)
        self._interfaces.clear()
        self._removed = True
        storage.group(self._component_group).remove_member(self.identifier)
        storage._discard(self)
        logger.debug("Component '%s' removed from group '%s'", self.identifier, self._component_group)

    def to_json(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "name": self.name,
            "type": self.type_name,
            "isVirtual": False,
            "isSwitch": False,
            "componentGroup": self._component_group,
            "interfaces": [iface.to_json() for iface in self._interfaces.values()],
        }
