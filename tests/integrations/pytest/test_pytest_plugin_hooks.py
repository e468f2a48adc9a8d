from __future__ import annotations

import inspect
from collections.abc import Callable
from typing import Any, Protocol, cast
from unittest import mock

from standin import Double, Resolver, Spy, Subject
from standin._internal.markers import DoubleMarker, SpyMarker, SubjectMarker
from standin.integrations.pytest_plugin import (
    inspect_marked_parameters,
    pytest_pycollect_makeitem,
    pytest_pyfunc_call,
    supply_marked_parameters,
)


class _Repository(Protocol):
    def count(self) -> int: ...


class _Counter:
    def __init__(self, repository: _Repository) -> None:
        self.repository = repository


class _Clock:
    pass


class _Ledger:
    def __init__(self, clock: _Clock) -> None:
        self.clock = clock

    def current_clock(self) -> _Clock:
        return self.clock


class _DummyCollector:
    def __init__(self, *, is_test_function: bool) -> None:
        self._is_test_function = is_test_function

    def istestfunction(self, obj: object, name: str) -> bool:
        _ = obj, name
        return self._is_test_function


class _DummyPyFuncItem:
    def __init__(self, *, obj: Callable[..., Any], resolver: Resolver | None) -> None:
        self.obj = obj
        if resolver is not None:
            self._standin_resolver = resolver


def test_inspect_marked_parameters_in_signature_order() -> None:
    def test_handler(
        value: int,
        counter: Subject[_Counter],
        repository: Double[_Repository],
        spy: Spy[_Counter],
    ) -> None:
        _ = value, counter, repository, spy

    marked = inspect_marked_parameters(test_handler)

    assert [parameter.name for parameter in marked] == ["counter", "repository", "spy"]
    assert [parameter.dependency for parameter in marked] == [_Counter, _Repository, _Counter]
    assert isinstance(marked[0].marker, SubjectMarker)
    assert isinstance(marked[1].marker, DoubleMarker)
    assert isinstance(marked[2].marker, SpyMarker)


def test_supply_builds_doubles_before_subjects() -> None:
    resolver = Resolver()

    def test_handler(counter: Subject[_Counter], repository: Double[_Repository]) -> None:
        _ = counter, repository

    values = supply_marked_parameters(resolver, inspect_marked_parameters(test_handler))

    assert values["counter"].repository is values["repository"]
    assert isinstance(values["repository"], mock.NonCallableMagicMock)


def test_supply_wires_double_declared_after_spy() -> None:
    resolver = Resolver()

    def test_handler(ledger: Spy[_Ledger], clock: Double[_Clock]) -> None:
        _ = ledger, clock

    values = supply_marked_parameters(resolver, inspect_marked_parameters(test_handler))

    assert isinstance(values["clock"], mock.NonCallableMagicMock)
    assert values["ledger"].current_clock() is values["clock"]
    assert resolver.get_instance(_Clock) is values["clock"]


def test_supply_replaces_previously_cached_real_instance() -> None:
    resolver = Resolver()
    real_clock = resolver.get_instance(_Clock)

    def test_handler(clock: Double[_Clock]) -> None:
        _ = clock

    values = supply_marked_parameters(resolver, inspect_marked_parameters(test_handler))

    assert values["clock"] is not real_clock
    assert isinstance(values["clock"], _Clock)
    assert resolver.get_instance(_Clock) is values["clock"]


def test_pycollect_makeitem_ignores_non_callable_objects() -> None:
    collector = _DummyCollector(is_test_function=True)

    result = pytest_pycollect_makeitem(collector=collector, name="test_value", obj=1)

    assert result is None


def test_pycollect_makeitem_ignores_non_test_callables() -> None:
    collector = _DummyCollector(is_test_function=False)

    def helper(value: int, counter: Subject[_Counter]) -> None:
        _ = value, counter

    original_signature = inspect.signature(helper)
    result = pytest_pycollect_makeitem(collector=collector, name="helper", obj=helper)

    assert result is None
    assert inspect.signature(helper) == original_signature


def test_pycollect_makeitem_rewrites_signature_for_marked_parameters() -> None:
    collector = _DummyCollector(is_test_function=True)

    def test_handler(value: int, counter: Subject[_Counter]) -> tuple[int, _Counter]:
        return value, counter

    assert tuple(inspect.signature(test_handler).parameters) == ("value", "counter")
    result = pytest_pycollect_makeitem(
        collector=collector,
        name="test_handler",
        obj=test_handler,
    )

    assert result is None
    assert tuple(inspect.signature(test_handler).parameters) == ("value",)


def test_pyfunc_call_passes_through_when_no_marked_parameters() -> None:
    def test_handler(value: int) -> int:
        return value

    item = _DummyPyFuncItem(obj=test_handler, resolver=Resolver())
    hook = pytest_pyfunc_call(cast("Any", item))
    next(hook)

    assert item.obj is test_handler
    next(hook, None)
    assert item.obj is test_handler


def test_pyfunc_call_wraps_marked_callable_and_restores_original() -> None:
    resolver = Resolver()
    registered = _Counter(repository=cast("_Repository", None))
    resolver.register_instance(_Counter, registered)

    def test_handler(counter: Subject[_Counter]) -> _Counter:
        return counter

    item = _DummyPyFuncItem(obj=test_handler, resolver=resolver)
    hook = pytest_pyfunc_call(cast("Any", item))
    next(hook)

    wrapped = cast("Callable[..., _Counter]", item.obj)
    override = _Counter(repository=cast("_Repository", None))
    assert wrapped() is registered
    assert wrapped(counter=override) is override

    next(hook, None)
    assert item.obj is test_handler


def test_pyfunc_call_passes_through_when_resolver_state_is_missing() -> None:
    def test_handler(counter: Subject[_Counter]) -> _Counter:
        return counter

    item = _DummyPyFuncItem(obj=test_handler, resolver=None)
    hook = pytest_pyfunc_call(cast("Any", item))
    next(hook)

    assert item.obj is test_handler
    next(hook, None)
    assert item.obj is test_handler
