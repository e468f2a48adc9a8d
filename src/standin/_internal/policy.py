from __future__ import annotations

import threading
from collections.abc import Iterable
from typing import Any

from standin._internal.type_checks import is_interface_or_abstract


class Policy:
    """Decide whether a type resolves to a test double or to a real object.

    Decision order:

    1. types forced to doubles resolve to doubles;
    2. types forced to real objects resolve for real;
    3. otherwise protocols and abstract classes resolve to doubles and concrete
       classes are built for real.

    A type present in both override sets resolves to a double. Decisions are
    memoized until ``reset``.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._forced_double: set[type[Any]] = set()
        self._forced_real: set[type[Any]] = set()
        self._decisions: dict[type[Any], bool] = {}

    def force_double(self, dependencies: Iterable[type[Any]]) -> None:
        with self._lock:
            for dependency in dependencies:
                self._forced_double.add(dependency)
                self._decisions.pop(dependency, None)

    def force_real(self, dependencies: Iterable[type[Any]]) -> None:
        with self._lock:
            for dependency in dependencies:
                self._forced_real.add(dependency)
                self._decisions.pop(dependency, None)

    def should_build_double(self, dependency: type[Any]) -> bool:
        """Return true when ``dependency`` must be substituted by a double."""
        decision = self._decisions.get(dependency)
        if decision is not None:
            return decision

        with self._lock:
            if dependency in self._forced_double:
                decision = True
            elif dependency in self._forced_real:
                decision = False
            else:
                decision = is_interface_or_abstract(dependency)
            self._decisions[dependency] = decision
        return decision

    def reset(self) -> None:
        with self._lock:
            self._forced_double.clear()
            self._forced_real.clear()
            self._decisions.clear()
