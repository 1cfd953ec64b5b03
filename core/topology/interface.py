# core/topology/interface.py
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from core.exceptions import ValidationError
from core.identifiers import RDFObject
from core.topology.element import NetworkInterfaceCapability, RemovableElement, TopologyElement
from core.topology.network import IPConfig

logger = logging.getLogger(__name__)


class PortOrientation(str, Enum):
    """Side of the component box an interface is drawn on."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"


class BaseInterface(TopologyElement, RemovableElement, NetworkInterfaceCapability, RDFObject):
    """
    Common state of real and virtual interfaces: the attached cable(s) and
    VLAN assignments, both held as identifiers, and the IP configurations.
    """
    kind = "interface"

    def __init__(self, identifier: Optional[str] = None,
                 orientation: Union[str, PortOrientation] = PortOrientation.BOTTOM,
                 vlans: Iterable[str] = (), uri: Optional[str] = None,
                 namespace: Optional[str] = None) -> None:
        RDFObject.__init__(self, identifier, uri, namespace)
        TopologyElement.__init__(self, self.rdf_local_name)
        self.orientation = orientation
        self._cables: Dict[str, None] = {}
        self.vlans = set(vlans)
        self._ip_configs: List[IPConfig] = []

    @property
    def orientation(self) -> PortOrientation:
        return self._orientation

    @orientation.setter
    def orientation(self, value: Union[str, PortOrientation]) -> None:
        try:
            self._orientation = PortOrientation(value)
        except ValueError:
            raise ValidationError(f"Interface '{self.identifier}' has invalid orientation '{value}'.")

    @property
    def cables(self) -> Tuple[str, ...]:
        return tuple(self._cables)

    @property
    def cable(self) -> Optional[str]:
        """The attached cable, or None. Under MULTI policy the first one."""
        return next(iter(self._cables), None)

    @property
    def is_connected(self) -> bool:
        return bool(self._cables)

    def _attach(self, cable_id: str) -> None:
        self._cables[cable_id] = None

    def _detach(self, cable_id: str) -> None:
        self._cables.pop(cable_id, None)

    @property
    def ip_configs(self) -> Tuple[IPConfig, ...]:
        return tuple(self._ip_configs)

    @property
    def is_ip_configured(self) -> bool:
        return bool(self._ip_configs)

    def _configure_ip(self, config: IPConfig) -> None:
        self._ip_configs.append(config)

    def _remove_ip_config(self, config: IPConfig) -> None:
        self._ip_configs.remove(config)
        config.network.release(config.address)

    def to_json(self) -> Dict[str, Any]:
        rv = {
            "identifier": self.identifier,
            "isVirtual": self.is_virtual,
            "componentGroup": self.component_group,
            "orientation": self.orientation.value,
            "cable": self.cable,
            "vlan": sorted(self.vlans),
            "ipConfig": [conf.to_json() for conf in self._ip_configs],
        }
        if len(self._cables) > 1:
            rv["cables"] = list(self._cables)
        return rv

    def remove_from_topology(self, storage) -> None:
        for cable_id in list(self._cables):
            storage.lookup(cable_id).remove_from_topology(storage)
        for vlan_id in sorted(self.vlans):
            storage.lookup(vlan_id).remove_member(self.identifier)
        self.vlans.clear()
        for conf in list(self._ip_configs):
            self._remove_ip_config(conf)
        storage._discard(self)


class NetworkInterface(BaseInterface):
    """
    A port of a NetworkComponent. The component owns the interface; the
    interface only knows the component's identifier and inherits its group.
    """
    def __init__(self, identifier: Optional[str] = None,
                 orientation: Union[str, PortOrientation] = PortOrientation.BOTTOM,
                 vlans: Iterable[str] = (), uri: Optional[str] = None,
                 namespace: Optional[str] = None) -> None:
        super().__init__(identifier, orientation, vlans, uri, namespace)
        self._component_id: Optional[str] = None
        self._component_group: Optional[str] = None

    @property
    def is_virtual(self) -> bool:
        return False

    @property
    def component_id(self) -> Optional[str]:
        return self._component_id

    @property
    def component_group(self) -> Optional[str]:
        return self._component_group

    def _bind(self, component_id: str, group: Optional[str]) -> None:
        if self._component_id is not None and self._component_id != component_id:
            raise ValidationError(
                f"Interface '{self.identifier}' already belongs to component '{self._component_id}'.")
        self._component_id = component_id
        self._component_group = group

    def to_json(self) -> Dict[str, Any]:
        rv = super().to_json()
        rv["component"] = self._component_id
        return rv


class VirtualInterface(BaseInterface):
    """
    A helper port with no physical counterpart. It has no owning component
    and declares its own group.
    """
    def __init__(self, identifier: Optional[str] = None, group: Optional[str] = None,
                 orientation: Union[str, PortOrientation] = PortOrientation.BOTTOM,
                 vlans: Iterable[str] = (), uri: Optional[str] = None,
                 namespace: Optional[str] = None) -> None:
        super().__init__(identifier, orientation, vlans, uri, namespace)
        self._component_group = group

    @property
    def is_virtual(self) -> bool:
        return True

    @property
    def component_id(self) -> None:
        return None

    @property
    def component_group(self) -> Optional[str]:
        return self._component_group

    def _set_group(self, group: str) -> None:
        self._component_group = group

    def remove_from_topology(self, storage) -> None:
        group = self._component_group
        super().remove_from_topology(storage)
        storage.group(group).remove_member(self.identifier)
        logger.debug("Virtual interface '%s' removed from group '%s'", self.identifier, group)
