# core/topology/element.py
"""
Capability interfaces shared by everything the topology storage holds.
Each entity implements the subset it supports: a cable is removable and
produces JSON but is not an interface; a VLAN is removable but owns nothing.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict

from core.exceptions import ValidationError


class TopologyElement(ABC):
    """
    Anything with a unique identifier and a JSON projection.
    """
    kind: str = "element"  # Override in subclasses

    def __init__(self, identifier: str) -> None:
        if not isinstance(identifier, str) or not identifier:
            raise ValidationError(f"Invalid {self.kind} identifier: {identifier!r}")
        self._identifier = identifier

    @property
    def identifier(self) -> str:
        return self._identifier

    @abstractmethod
    def to_json(self) -> Dict[str, Any]:
        """
        Return a JSON-compatible dictionary describing this element.
        Related elements are referenced by identifier only.
        """
        pass

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self._identifier}>"


class RemovableElement(ABC):
    """
    An element that knows how to take itself, and whatever depends on it,
    out of a storage.
    """
    @abstractmethod
    def remove_from_topology(self, storage) -> None:
        """
        Remove this element from ``storage``. Dependent elements are removed
        first so that no survivor references a removed identifier.
        Must only be called by the storage while it holds its lock.
        """
        pass


class NetworkInterfaceCapability(ABC):
    """Port-like elements: real component ports and virtual helper ports."""

    @property
    @abstractmethod
    def is_virtual(self) -> bool:
        pass

    @property
    @abstractmethod
    def component_group(self) -> str:
        pass
