# core/topology/group.py
from typing import Dict, List

from core.exceptions import ValidationError


class ComponentGroup:
    """
    A named partition of the topology used for display and scoping.
    Holds identifiers only; membership never implies ownership and is
    maintained exclusively by the TopologyStorage.
    """
    def __init__(self, name: str):
        if not isinstance(name, str) or not name:
            raise ValidationError(f"Invalid component group name: {name!r}")
        self.name = name
        # Insertion-ordered sets
        self._members: Dict[str, None] = {}
        self._cables: Dict[str, None] = {}

    @property
    def members(self) -> List[str]:
        return list(self._members)

    @property
    def cables(self) -> List[str]:
        return list(self._cables)

    @property
    def is_empty(self) -> bool:
        return not self._members and not self._cables

    def add_member(self, identifier: str) -> None:
        self._members[identifier] = None

    def remove_member(self, identifier: str) -> None:
        self._members.pop(identifier, None)

    def add_cable(self, identifier: str) -> None:
        self._cables[identifier] = None

    def remove_cable(self, identifier: str) -> None:
        self._cables.pop(identifier, None)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._members or identifier in self._cables

    def __repr__(self) -> str:
        return f"<ComponentGroup {self.name} members={len(self._members)} cables={len(self._cables)}>"
