# components/vm.py
from typing import Any, Dict

from core.topology.component import NetworkComponent


class VMComponent(NetworkComponent):
    """A virtual machine. Its interfaces are still real component ports."""
    type_name = "vm"
    default_name = "VM $ID$"

    def to_json(self) -> Dict[str, Any]:
        rv = super().to_json()
        rv["isVirtual"] = True
        return rv
