# core/topology/cable.py
import logging
from typing import Any, Dict, Optional, Tuple

from core.exceptions import ValidationError
from core.topology.element import RemovableElement, TopologyElement

logger = logging.getLogger(__name__)


class NetworkCable(TopologyElement, RemovableElement):
    """
    An edge between exactly two distinct interfaces.
    Endpoints are weak references (identifiers); a cable never owns them.
    """
    kind = "cable"
    type_name = "ncable"

    def __init__(self, identifier: str, endpoint_a: str, endpoint_b: str,
                 group_name: Optional[str] = None) -> None:
        super().__init__(identifier)
        if not endpoint_a or not endpoint_b:
            raise ValidationError(f"Cable '{identifier}' needs two endpoints.")
        if endpoint_a == endpoint_b:
            raise ValidationError(f"Cable '{identifier}' cannot connect interface '{endpoint_a}' to itself.")
        self.endpoint_a = endpoint_a
        self.endpoint_b = endpoint_b
        # Display group; resolved by the storage on registration if None.
        self.group_name = group_name

    @property
    def endpoints(self) -> Tuple[str, str]:
        return self.endpoint_a, self.endpoint_b

    def links(self, a: str, b: str) -> bool:
        """True if this cable joins interfaces ``a`` and ``b`` in either direction."""
        return {a, b} == {self.endpoint_a, self.endpoint_b}

    def remove_from_topology(self, storage) -> None:
        for endpoint in self.endpoints:
            storage.lookup(endpoint)._detach(self.identifier)
        storage.group(self.group_name).remove_cable(self.identifier)
        storage._discard(self)
        logger.debug("Cable '%s' between '%s' and '%s' removed",
                     self.identifier, self.endpoint_a, self.endpoint_b)

    def to_json(self) -> Dict[str, Any]:
        return {
            "identifier": self.identifier,
            "endpointA": self.endpoint_a,
            "endpointB": self.endpoint_b,
            "group": self.group_name,
        }
