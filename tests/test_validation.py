import pytest
from core.exceptions import NotFound, ValidationError
from core.topology.interface import NetworkInterface, VirtualInterface
from components.host import HostComponent

def test_validate_passes(linked_storage, dummy_logger):
    linked_storage.validate()
    assert "Topology validation passed" in dummy_logger.text

def test_validate_reports_all_errors(linked_storage):
    # Corrupt the storage behind its back.
    linked_storage.lookup("dev2:eth0")._detach("cableA")
    linked_storage.lookup("dev1:eth1")._attach("ghost")
    with pytest.raises(ValidationError) as excinfo:
        linked_storage.validate(verbose=False)
    message = str(excinfo.value)
    assert "Cable 'cableA' refers to unknown interface 'dev2:eth0'" in message
    assert "Interface 'dev1:eth1' refers to unknown cable 'ghost'" in message

def test_validate_detects_missing_group(storage):
    storage.add_group("core")
    storage.register(VirtualInterface("v0", group="core"))
    storage._groups.pop("core")
    with pytest.raises(ValidationError, match="unknown group 'core'"):
        storage.validate(verbose=False)

def test_find_path(linked_storage):
    linked_storage.register(HostComponent("dev3", interfaces=[NetworkInterface("dev3:eth0")]))
    linked_storage.connect("dev1:eth1", "dev3:eth0", identifier="cableB")
    assert linked_storage.find_path("dev2", "dev3") == [
        "dev2", "dev2:eth0", "dev1:eth0", "dev1", "dev1:eth1", "dev3:eth0", "dev3"]

def test_find_path_disconnected(linked_storage):
    linked_storage.unregister("cableA")
    assert linked_storage.find_path("dev1", "dev2") == []

def test_find_path_unknown(linked_storage):
    with pytest.raises(NotFound):
        linked_storage.find_path("dev1", "cableA")

def test_move_component_to_group(linked_storage):
    linked_storage.add_group("core")
    linked_storage.move_to_group("dev1", "core")
    assert linked_storage.group("core").members == ["dev1"]
    assert linked_storage.lookup("dev1:eth0").component_group == "core"
    # dev2 stays in the global group, so the cable is displayed in core
    assert linked_storage.lookup("cableA").group_name == "core"
    assert linked_storage.group("core").cables == ["cableA"]
    assert linked_storage.group(linked_storage.global_group).cables == []
    linked_storage.validate(verbose=False)

def test_move_to_unknown_group(linked_storage):
    with pytest.raises(ValidationError):
        linked_storage.move_to_group("dev1", "nope")
    assert linked_storage.lookup("dev1").component_group == linked_storage.global_group

def test_move_cable_rejected(linked_storage):
    linked_storage.add_group("core")
    with pytest.raises(ValidationError, match="cannot be assigned to a group"):
        linked_storage.move_to_group("cableA", "core")

def test_group_removal_after_move(linked_storage):
    linked_storage.add_group("core")
    linked_storage.move_to_group("dev1", "core")
    linked_storage.move_to_group("dev1", linked_storage.global_group)
    linked_storage.remove_group("core")
    linked_storage.validate(verbose=False)

def test_validate_detects_group_membership_drift(linked_storage):
    group = linked_storage.group(linked_storage.global_group)
    assert "dev1" in group and "cableA" in group
    group.remove_member("dev1")
    group.remove_cable("cableA")
    with pytest.raises(ValidationError) as excinfo:
        linked_storage.validate(verbose=False)
    message = str(excinfo.value)
    assert "Component 'dev1' is missing from group" in message
    assert "Cable 'cableA' is missing from group" in message
