import pytest
from core.topology.config import CablePolicy, StorageConfig
from core.topology.interface import NetworkInterface
from core.topology.storage import TopologyStorage
from components.host import HostComponent
from components.switch import SwitchComponent

@pytest.fixture
def storage():
    return TopologyStorage()

@pytest.fixture
def multi_storage():
    return TopologyStorage(StorageConfig(cable_policy=CablePolicy.MULTI))

@pytest.fixture
def linked_storage():
    """
    dev1 (dev1:eth0, dev1:eth1) and dev2 (dev2:eth0) joined by cableA
    between dev1:eth0 and dev2:eth0.
    """
    storage = TopologyStorage()
    storage.register(SwitchComponent("dev1", interfaces=[NetworkInterface("dev1:eth0"),
                                                         NetworkInterface("dev1:eth1")]))
    storage.register(HostComponent("dev2", interfaces=[NetworkInterface("dev2:eth0")]))
    storage.connect("dev1:eth0", "dev2:eth0", identifier="cableA")
    return storage

@pytest.fixture
def dummy_logger(caplog):
    caplog.set_level("DEBUG")
    return caplog
