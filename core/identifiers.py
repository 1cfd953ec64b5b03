# core/identifiers.py
"""
Local name resolution for RDF resources.
A local name is the part of a fully-qualified resource URI that follows its
namespace, e.g. ``http://example.org/ns#deviceA`` -> ``deviceA``.
"""
from typing import Optional, Tuple

from core.exceptions import ValidationError


def resolve_local_name(uri: str, namespace: str) -> str:
    """
    Return the local name of ``uri`` relative to ``namespace``.

    Raises:
        ValidationError if ``uri`` does not start with ``namespace`` or
        nothing follows the namespace.
    """
    if not isinstance(uri, str) or not isinstance(namespace, str):
        raise ValidationError("URI and namespace must be strings.")
    if not namespace or not uri.startswith(namespace):
        raise ValidationError(f"URI '{uri}' is not in namespace '{namespace}'.")
    local_name = uri[len(namespace):]
    if not local_name:
        raise ValidationError(f"URI '{uri}' has an empty local name.")
    return local_name


def split_uri(uri: str) -> Tuple[str, str]:
    """
    Split a URI into (namespace, local name) on the last '#' or '/'.
    """
    cut = max(uri.rfind("#"), uri.rfind("/"))
    if cut < 0 or cut == len(uri) - 1:
        raise ValidationError(f"Cannot derive a local name from '{uri}'.")
    return uri[:cut + 1], uri[cut + 1:]


class RDFObject:
    """
    Mixin for elements described by an RDF resource.
    The local name is fixed at construction. It is derived from ``uri`` only
    when no explicit local name is given; the URI itself is always kept.
    """
    def __init__(self, local_name: Optional[str], uri: Optional[str] = None, namespace: Optional[str] = None):
        if local_name is None and uri is not None:
            if namespace is not None:
                local_name = resolve_local_name(uri, namespace)
            else:
                _, local_name = split_uri(uri)
        if not local_name:
            raise ValidationError("Local name cannot be empty.")
        self._rdf_local_name = local_name
        self.uri = uri

    @property
    def rdf_local_name(self) -> str:
        return self._rdf_local_name
