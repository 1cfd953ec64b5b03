# components/factory.py
from typing import Type, Dict
from core.topology.component import NetworkComponent
from components.host import HostComponent
from components.switch import SwitchComponent
from components.vm import VMComponent
from core.exceptions import ValidationError

# Use the type_name attributes from each class.
_component_registry: Dict[str, Type[NetworkComponent]] = {
    HostComponent.type_name: HostComponent,
    SwitchComponent.type_name: SwitchComponent,
    VMComponent.type_name: VMComponent,
}

def get_component_class(type_name: str) -> Type[NetworkComponent]:
    if not isinstance(type_name, str):
        raise ValidationError("Component type name must be a string.")
    comp_class = _component_registry.get(type_name.lower())
    if comp_class is None:
        raise ValidationError(f"Unknown component type: {type_name}")
    return comp_class

def register_component(type_name: str, comp_class: Type[NetworkComponent]) -> None:
    if not isinstance(type_name, str):
        raise ValidationError("Component type name must be a string.")
    if not isinstance(comp_class, type) or not issubclass(comp_class, NetworkComponent):
        raise ValidationError("Registered component must be a subclass of NetworkComponent.")
    _component_registry[type_name.lower()] = comp_class

def component_types() -> list:
    return sorted(_component_registry)
