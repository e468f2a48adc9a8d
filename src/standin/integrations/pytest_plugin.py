"""pytest integration for standin.

Enable it with ``pytest_plugins = ["standin.integrations.pytest_plugin"]``.

Every test gets a fresh ``Resolver`` through the ``standin_resolver`` fixture,
reset after the test. Test parameters annotated with ``Double[T]``,
``Spy[T]`` or ``Subject[T]`` are hidden from pytest's fixture lookup and
supplied when the test runs: doubles first, then spies, then subjects, so the
subject's graph is wired with the doubles and spies the test receives.
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable, Iterator
from contextlib import suppress
from dataclasses import dataclass
from typing import Any, cast, get_type_hints

import pytest

from standin._internal.doubles import build_spy
from standin._internal.markers import DoubleMarker, ParameterMarker, SpyMarker, extract_marker
from standin._internal.resolver import Resolver

_STANDIN_RESOLVER_ATTR = "_standin_resolver"
_STANDIN_MARKED_PARAMETERS_ATTR = "__standin_pytest_marked_parameters__"
_STANDIN_ORIGINAL_SIGNATURE_ATTR = "__standin_pytest_original_signature__"


@dataclass(frozen=True, slots=True)
class MarkedParameter:
    """Test parameter supplied by the plugin instead of a fixture."""

    name: str
    dependency: Any
    marker: ParameterMarker


def inspect_marked_parameters(callable_obj: Callable[..., Any]) -> tuple[MarkedParameter, ...]:
    """Return the ``Double``/``Spy``/``Subject`` parameters of a callable in signature order."""
    try:
        annotations = get_type_hints(callable_obj, include_extras=True)
    except (AttributeError, NameError, TypeError):
        return ()

    marked: list[MarkedParameter] = []
    for parameter in inspect.signature(callable_obj).parameters.values():
        extracted = extract_marker(annotations.get(parameter.name, parameter.annotation))
        if extracted is None:
            continue
        dependency, marker = extracted
        marked.append(MarkedParameter(name=parameter.name, dependency=dependency, marker=marker))
    return tuple(marked)


def supply_marked_parameters(
    resolver: Resolver,
    parameters: tuple[MarkedParameter, ...],
) -> dict[str, Any]:
    """Build values for marked parameters: doubles, then spies, then subjects.

    Each ``Double`` gets a new double placed in the cache, so a real instance
    cached earlier is replaced. Spies are built after every double so the real
    objects they wrap are wired with those doubles.
    """
    values: dict[str, Any] = {}
    for parameter in parameters:
        if isinstance(parameter.marker, DoubleMarker):
            values[parameter.name] = resolver.replace_with_double(parameter.dependency)

    for parameter in parameters:
        if isinstance(parameter.marker, SpyMarker):
            spy = build_spy(resolver.get_instance(parameter.dependency))
            resolver.register_instance(parameter.dependency, spy)
            values[parameter.name] = spy

    for parameter in parameters:
        if parameter.name not in values:
            values[parameter.name] = resolver.get_instance(parameter.dependency)
    return values


@pytest.fixture()
def standin_resolver() -> Iterator[Resolver]:
    """Create a per-test resolver, reset when the test finishes.

    Override this fixture to configure the resolver, e.g. with
    ``Resolver(smart_doubles=True)`` or pre-registered instances.

    Yields:
        A new ``Resolver`` instance.

    """
    resolver = Resolver()
    yield resolver
    resolver.reset()


@pytest.fixture(autouse=True)
def _standin_state(
    request: pytest.FixtureRequest,
    standin_resolver: Resolver,
) -> None:
    """Store plugin state on the test node for hook access."""
    node = cast("Any", request.node)
    setattr(node, _STANDIN_RESOLVER_ATTR, standin_resolver)


def pytest_pycollect_makeitem(
    collector: Any,
    name: str,
    obj: object,
) -> Any | None:
    """Hide marked parameters from pytest fixture name matching.

    Args:
        collector: Pytest collector instance.
        name: Collected object name.
        obj: Candidate object.

    Returns:
        ``None`` to continue default collection flow.

    """
    if not callable(obj):
        return None
    if not collector.istestfunction(obj, name):
        return None

    callable_obj = cast("Callable[..., Any]", obj)
    marked_parameters = inspect_marked_parameters(callable_obj)
    if not marked_parameters:
        return None

    signature = inspect.signature(callable_obj)
    hidden = {parameter.name for parameter in marked_parameters}
    public_signature = signature.replace(
        parameters=[
            parameter for parameter in signature.parameters.values() if parameter.name not in hidden
        ],
    )

    obj_as_any = cast("Any", obj)
    obj_as_any.__dict__[_STANDIN_MARKED_PARAMETERS_ATTR] = marked_parameters
    obj_as_any.__dict__[_STANDIN_ORIGINAL_SIGNATURE_ATTR] = signature
    obj_as_any.__signature__ = public_signature
    return None


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> Iterator[None]:
    """Wrap test execution so marked parameters are supplied from the test's resolver.

    If no resolver state is attached to the node, this hook is a no-op.

    Args:
        pyfuncitem: Collected pytest function item.

    Yields:
        Control back to pytest around test execution.

    """
    original_callable = cast("Callable[..., Any]", pyfuncitem.obj)
    original_callable_as_any = cast("Any", original_callable)
    marked_parameters = cast(
        "tuple[MarkedParameter, ...] | None",
        getattr(original_callable_as_any, _STANDIN_MARKED_PARAMETERS_ATTR, None),
    )
    if marked_parameters is None:
        marked_parameters = inspect_marked_parameters(original_callable)
    if not marked_parameters:
        yield
        return

    item = cast("Any", pyfuncitem)
    resolver = cast("Resolver | None", getattr(item, _STANDIN_RESOLVER_ATTR, None))
    if resolver is None:
        yield
        return

    had_signature_override = hasattr(original_callable_as_any, "__signature__")
    signature_override = cast("Any", getattr(original_callable_as_any, "__signature__", None))
    original_signature = cast(
        "inspect.Signature | None",
        getattr(original_callable_as_any, _STANDIN_ORIGINAL_SIGNATURE_ATTR, None),
    )
    if original_signature is not None:
        original_callable_as_any.__signature__ = original_signature

    try:
        pyfuncitem.obj = _wrap_with_marked_parameters(original_callable, resolver, marked_parameters)
    finally:
        if had_signature_override:
            original_callable_as_any.__signature__ = signature_override
        else:
            with suppress(AttributeError):
                del original_callable_as_any.__signature__

    try:
        yield
    finally:
        pyfuncitem.obj = original_callable


def _wrap_with_marked_parameters(
    original_callable: Callable[..., Any],
    resolver: Resolver,
    marked_parameters: tuple[MarkedParameter, ...],
) -> Callable[..., Any]:
    if inspect.iscoroutinefunction(original_callable):

        @functools.wraps(original_callable)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            supplied = supply_marked_parameters(resolver, marked_parameters)
            return await original_callable(*args, **{**supplied, **kwargs})

        return async_wrapper

    @functools.wraps(original_callable)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        supplied = supply_marked_parameters(resolver, marked_parameters)
        return original_callable(*args, **{**supplied, **kwargs})

    return wrapper
