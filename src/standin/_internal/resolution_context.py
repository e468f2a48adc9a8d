from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from standin.exceptions import StandInCycleDetectedError


class ResolutionContext:
    """Track the types currently under construction along one call path.

    A context is threaded explicitly through every recursive
    ``Resolver.get_instance`` call, so two root resolutions never share a
    creation stack. Root calls that do not pass a context get a fresh one, which
    is dropped when the root call returns.

    Reuse a context only from a single thread of control, and call
    ``Resolver.clear_execution_context(context)`` before handing it to another
    unit of work.
    """

    __slots__ = ("_members", "_stack")

    def __init__(self) -> None:
        self._stack: list[type[Any]] = []
        self._members: set[type[Any]] = set()

    def __contains__(self, dependency: object) -> bool:
        return dependency in self._members

    def __len__(self) -> int:
        return len(self._stack)

    def __repr__(self) -> str:
        names = ", ".join(item.__qualname__ for item in self._stack)
        return f"ResolutionContext([{names}])"

    @property
    def path(self) -> tuple[type[Any], ...]:
        """Return the creation stack, outermost type first."""
        return tuple(self._stack)

    @contextmanager
    def enter(self, dependency: type[Any]) -> Iterator[None]:
        """Push ``dependency`` for the duration of the block.

        Raises:
            StandInCycleDetectedError: If ``dependency`` is already being built
                on this context. The error path ends with the repeated type.

        """
        if dependency in self._members:
            raise StandInCycleDetectedError((*self._stack, dependency))

        self._stack.append(dependency)
        self._members.add(dependency)
        try:
            yield
        finally:
            # The stack may have been cleared while the block was running.
            if self._stack and self._stack[-1] is dependency:
                self._stack.pop()
                self._members.discard(dependency)

    def clear(self) -> None:
        """Drop every entry, e.g. before reusing the context on a pooled worker."""
        self._stack.clear()
        self._members.clear()
