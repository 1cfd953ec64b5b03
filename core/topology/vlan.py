# core/topology/vlan.py
import re
from typing import Any, Dict, List, Optional

from core.exceptions import ValidationError
from core.identifiers import RDFObject
from core.topology.element import RemovableElement, TopologyElement

VLAN_COLORS = (
    "#CCCCFF", "#9999FF", "#6666FF", "#3333FF",
    "#FFB2B2", "#FF9999", "#FF6666", "#FF4D4D",
    "#00FF00", "#00CC00", "#00B200", "#009900",
)
_COLOR_PATTERN = re.compile(r"#[a-fA-F0-9]{6}")


class ColorChooser:
    """Hands out display colors for new VLANs in round-robin order."""

    def __init__(self, colors=VLAN_COLORS):
        self._colors = tuple(colors)
        self._next = 0

    def next_color(self) -> str:
        color = self._colors[self._next]
        self._next = (self._next + 1) % len(self._colors)
        return color

    def reset(self) -> None:
        self._next = 0


class VLAN(TopologyElement, RemovableElement, RDFObject):
    """
    A virtual LAN that interfaces can be assigned to.
    """
    kind = "vlan"
    type_name = "vlan"

    def __init__(self, vlan_id: int, identifier: Optional[str] = None, name: Optional[str] = None,
                 color: str = VLAN_COLORS[0], uri: Optional[str] = None,
                 namespace: Optional[str] = None) -> None:
        if isinstance(vlan_id, bool) or not isinstance(vlan_id, int) or vlan_id < 0:
            raise ValidationError(f"Invalid VLAN id: {vlan_id!r}")
        if identifier is None and uri is None:
            identifier = f"{self.type_name}_{vlan_id}"
        RDFObject.__init__(self, identifier, uri, namespace)
        TopologyElement.__init__(self, self.rdf_local_name)
        self.vlan_id = vlan_id
        self.name = name if name is not None else f"VLAN {vlan_id}"
        self.color = color
        self._interfaces: Dict[str, None] = {}

    @property
    def name(self) -> str:
        return self._name

    @name.setter
    def name(self, value: str) -> None:
        if not isinstance(value, str) or not value:
            raise ValidationError(f"VLAN '{self.identifier}' needs a non-empty name.")
        self._name = value

    @property
    def color(self) -> str:
        return self._color

    @color.setter
    def color(self, value: str) -> None:
        if not isinstance(value, str) or not _COLOR_PATTERN.fullmatch(value):
            raise ValidationError(f"Malformed color string for VLAN '{self.identifier}': {value!r}")
        self._color = value.upper()

    @property
    def interfaces(self) -> List[str]:
        return list(self._interfaces)

    def add_member(self, interface_id: str) -> None:
        self._interfaces[interface_id] = None

    def remove_member(self, interface_id: str) -> None:
        self._interfaces.pop(interface_id, None)

    def remove_from_topology(self, storage) -> None:
        if self._interfaces:
            raise ValidationError(
                f"VLAN '{self.identifier}' is still assigned to interfaces: {', '.join(self._interfaces)}")
        storage._discard(self)

    def to_json(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "id": self.vlan_id,
            "name": self.name,
            "color": self.color,
        }
