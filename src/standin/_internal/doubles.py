from __future__ import annotations

import collections.abc
import inspect
import logging
import types
from collections.abc import Callable
from typing import Any, Protocol, Union, get_args, get_origin, get_type_hints
from unittest import mock

from standin._internal.type_checks import is_interface_or_abstract, is_runtime_class

logger = logging.getLogger(__name__)

NestedDoubleBuilder = Callable[[type[Any]], Any]


class DefaultValueStrategy(Protocol):
    """Choose the value an unconfigured double method returns.

    ``default_for`` receives the method's return annotation and a callable that
    builds a nested double for a class. Returning ``unittest.mock.DEFAULT``
    keeps the mock library's own behavior for that method.
    """

    def default_for(self, annotation: Any, nested: NestedDoubleBuilder) -> Any: ...


class DoubleFactory(Protocol):
    """Build a substitute instance satisfying a type's contract."""

    def build_double(
        self,
        dependency: type[Any],
        strategy: DefaultValueStrategy | None = None,
    ) -> Any: ...


_EMPTY_VALUES: dict[Any, Callable[[], Any]] = {
    bool: lambda: False,
    int: lambda: 0,
    float: lambda: 0.0,
    complex: lambda: 0j,
    str: str,
    bytes: bytes,
    list: list,
    tuple: tuple,
    set: set,
    frozenset: frozenset,
    dict: dict,
    collections.abc.Sequence: list,
    collections.abc.MutableSequence: list,
    collections.abc.Iterable: list,
    collections.abc.Collection: list,
    collections.abc.Set: frozenset,
    collections.abc.MutableSet: set,
    collections.abc.Mapping: dict,
    collections.abc.MutableMapping: dict,
}
_MUTABLE_EMPTY_TYPES = (list, dict, set)


class SmartDefaults:
    """Return empty, falsy values matching each method's return annotation.

    ``str`` methods return ``""``, numbers return zero, ``bool`` returns
    ``False``, collections return empty containers and optionals or ``None``
    return ``None``. Methods returning a protocol or abstract class return a
    nested double. Anything else keeps the mock default.
    """

    def default_for(self, annotation: Any, nested: NestedDoubleBuilder) -> Any:
        if annotation is None or annotation is type(None):
            return None

        origin = get_origin(annotation)
        if origin is Union or origin is types.UnionType:
            if type(None) in get_args(annotation):
                return None
            return mock.DEFAULT

        target = origin if origin is not None else annotation
        empty = _EMPTY_VALUES.get(target)
        if empty is not None:
            return empty()

        if is_runtime_class(target) and is_interface_or_abstract(target):
            return nested(target)
        return mock.DEFAULT


class MockDoubleFactory:
    """Build doubles with ``unittest.mock.create_autospec``.

    Doubles are instance-specced, so unknown attributes and wrong call
    signatures fail loudly, and they record no calls until used. With a
    strategy, every public method's ``return_value`` is pre-configured from its
    return annotation; nested doubles are built eagerly and self-referencing
    return types fall back to the mock default. Methods returning a list, dict or
    set hand out a new empty container on every call.
    """

    def build_double(
        self,
        dependency: type[Any],
        strategy: DefaultValueStrategy | None = None,
    ) -> Any:
        return self._build(dependency, strategy, frozenset())

    def _build(
        self,
        dependency: type[Any],
        strategy: DefaultValueStrategy | None,
        building: frozenset[type[Any]],
    ) -> Any:
        double = mock.create_autospec(dependency, instance=True)
        if strategy is None:
            return double

        building = building | {dependency}

        def nested(annotation: type[Any]) -> Any:
            if annotation in building:
                return mock.DEFAULT
            return self._build(annotation, strategy, building)

        for name, function in self._public_methods(dependency):
            annotation = self._return_annotation(function)
            if annotation is inspect.Signature.empty:
                continue
            value = strategy.default_for(annotation, nested)
            if value is mock.DEFAULT:
                continue
            method = getattr(double, name)
            method.return_value = value
            if isinstance(value, _MUTABLE_EMPTY_TYPES):
                method.side_effect = self._fresh_default(method, value, annotation, strategy, nested)
        return double

    def _fresh_default(
        self,
        method: mock.MagicMock,
        installed: Any,
        annotation: Any,
        strategy: DefaultValueStrategy,
        nested: NestedDoubleBuilder,
    ) -> Callable[..., Any]:
        # A return_value assigned by the test replaces the installed one and wins.
        def side_effect(*args: Any, **kwargs: Any) -> Any:
            if method.return_value is not installed:
                return mock.DEFAULT
            return strategy.default_for(annotation, nested)

        return side_effect

    def _public_methods(self, dependency: type[Any]) -> list[tuple[str, Callable[..., Any]]]:
        methods: list[tuple[str, Callable[..., Any]]] = []
        for name in dir(dependency):
            if name.startswith("_"):
                continue
            attribute = inspect.getattr_static(dependency, name)
            if isinstance(attribute, (staticmethod, classmethod)):
                attribute = attribute.__func__
            if inspect.isfunction(attribute):
                methods.append((name, attribute))
        return methods

    def _return_annotation(self, function: Callable[..., Any]) -> Any:
        try:
            hints = get_type_hints(function)
        except (AttributeError, NameError, TypeError):
            logger.debug("Cannot resolve return annotation of %s", function.__qualname__)
            return inspect.Signature.empty
        return hints.get("return", inspect.Signature.empty)


def build_spy(target: Any) -> Any:
    """Wrap a real object so calls pass through while being recorded."""
    return mock.MagicMock(spec=target, wraps=target)
