from __future__ import annotations

import abc
import inspect
import types
from typing import Any, TypeGuard

from typing_extensions import is_protocol


def is_runtime_class(candidate: object) -> TypeGuard[type[Any]]:
    """Return true when candidate is a runtime class safe for class-only operations.

    Args:
        candidate: Value being checked for eligibility or runtime type constraints.

    """
    return isinstance(candidate, type) and not isinstance(candidate, types.GenericAlias)


def is_interface_or_abstract(candidate: type[Any]) -> bool:
    """Return true for protocols, classes with abstract members and direct ``ABC`` subclasses.

    Args:
        candidate: Class being classified.

    """
    if is_protocol(candidate):
        return True
    if inspect.isabstract(candidate):
        return True
    return abc.ABC in candidate.__bases__


__all__ = ["is_interface_or_abstract", "is_runtime_class"]
