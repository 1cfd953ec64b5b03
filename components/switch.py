# components/switch.py
from typing import Any, Dict

from core.topology.component import NetworkComponent


class SwitchComponent(NetworkComponent):
    """A layer-2 switch; flagged in its projection so it can be drawn as one."""
    type_name = "switch"
    default_name = "Switch $ID$"

    def to_json(self) -> Dict[str, Any]:
        rv = super().to_json()
        rv["isSwitch"] = True
        return rv
