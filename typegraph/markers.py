"""Class decorators that attach dependency metadata to Python types.

``known_types`` declares the concrete types a polymorphic member may carry,
the way serializers need them listed up front::

    @known_types(CardPayment, BankTransfer)
    class Payment: ...

``attributes`` attaches marker instances to a class. The graph treats each
marker's class as an attribute dependency of the decorated type.
"""

from __future__ import annotations

from typing import Any, Callable, TypeVar

T = TypeVar("T", bound=type)


def known_types(*types: type) -> Callable[[T], T]:
    def decorate(cls: T) -> T:
        inherited = cls.__dict__.get("__known_types__", ())
        cls.__known_types__ = tuple(inherited) + tuple(types)
        return cls
    return decorate


def attributes(*instances: Any) -> Callable[[T], T]:
    def decorate(cls: T) -> T:
        existing = cls.__dict__.get("__type_attributes__", ())
        cls.__type_attributes__ = tuple(existing) + tuple(instances)
        return cls
    return decorate
