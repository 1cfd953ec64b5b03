# components/host.py
from core.topology.component import NetworkComponent


class HostComponent(NetworkComponent):
    """A physical end host such as a server or workstation."""
    type_name = "host"
    default_name = "Host $ID$"
