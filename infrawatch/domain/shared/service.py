from dataclasses import dataclass
from typing import dataclass_transform


@dataclass_transform(kw_only_default=True)
class _ServiceMeta(type):
    """Turns every Service subclass into a keyword-only dataclass."""

    def __new__(mcs, name: str, bases: tuple, namespace: dict):
        cls = super().__new__(mcs, name, bases, namespace)
        if any(isinstance(base, mcs) for base in bases):
            return dataclass(kw_only=True)(cls)
        return cls


class Service(metaclass=_ServiceMeta):
    """Base for domain services.

    Collaborators (ports, configs, clocks) are declared as annotated fields
    and passed by keyword, so fields with defaults such as an injectable
    sleep or clock may precede required ones in subclasses.
    """
