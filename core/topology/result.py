# core/topology/result.py
from dataclasses import dataclass
from typing import Any, Dict, Optional

from core.exceptions import SerializationError


@dataclass(frozen=True)
class SerializationResult:
    """
    Outcome of building the topology JSON document.

    Attributes:
        value: The JSON document on success, otherwise None.
        error: The SerializationError that aborted the build, otherwise None.
    """
    value: Optional[Dict[str, Any]] = None
    error: Optional[SerializationError] = None

    @classmethod
    def success(cls, value: Dict[str, Any]) -> "SerializationResult":
        return cls(value=value)

    @classmethod
    def failure(cls, error: SerializationError) -> "SerializationResult":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> Dict[str, Any]:
        """Return the document or raise the stored error."""
        if self.error is not None:
            raise self.error
        return self.value
