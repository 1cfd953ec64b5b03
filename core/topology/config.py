# core/topology/config.py
from dataclasses import dataclass
from enum import Enum

from core.exceptions import ValidationError


class CablePolicy(str, Enum):
    """How many cables may be attached to one interface."""
    SINGLE = "single"
    MULTI = "multi"


GLOBAL_GROUP = "0.0.0.0"


@dataclass(frozen=True)
class StorageConfig:
    """
    Settings of one TopologyStorage instance.

    Attributes:
        cable_policy: SINGLE allows at most one cable per interface; MULTI
            allows several, but never two cables between the same pair.
        global_group: Name of the group that always exists and receives
            elements registered without a group.
    """
    cable_policy: CablePolicy = CablePolicy.SINGLE
    global_group: str = GLOBAL_GROUP

    def __post_init__(self):
        try:
            object.__setattr__(self, "cable_policy", CablePolicy(self.cable_policy))
        except ValueError:
            raise ValidationError(f"Unknown cable policy: {self.cable_policy!r}")
        if not isinstance(self.global_group, str) or not self.global_group:
            raise ValidationError("The global group needs a non-empty name.")
