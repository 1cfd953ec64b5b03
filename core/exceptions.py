# core/exceptions.py

class TopologyError(Exception):
    """Base exception for topology store errors."""
    pass

class IdentifierConflict(TopologyError):
    """Raised when an identifier is already registered in the storage."""
    pass

class NotFound(TopologyError):
    """Raised when an operation refers to an identifier that is not registered."""
    pass

class ValidationError(TopologyError):
    """Raised when an operation would violate a topology policy."""
    pass

class SerializationError(TopologyError):
    """Raised when the JSON projection of an element cannot be built."""

    def __init__(self, identifier: str, message: str):
        super().__init__(f"Cannot serialize '{identifier}': {message}")
        self.identifier = identifier
