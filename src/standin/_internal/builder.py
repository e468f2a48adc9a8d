from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic, TypeVar, cast

from standin._internal.doubles import DefaultValueStrategy, DoubleFactory
from standin._internal.resolver import Resolver
from standin.exceptions import StandInInvalidConfigurationError

T = TypeVar("T")


class ResolverBuilder(Generic[T]):
    """Configure a ``Resolver`` fluently and optionally build a target from it.

    Options that shape how doubles are made (``double_factory``,
    ``smart_doubles``, ``default_strategy``, ``debug``) are applied when the
    resolver is created; overrides and instances are replayed onto it in the
    order they were declared.

    Examples:
        .. code-block:: python

            manager = (
                Resolver.builder()
                .target(Manager)
                .smart_doubles()
                .double(Clock)
                .instance(Settings, Settings(debug=True))
                .build()
            )

    """

    def __init__(self) -> None:
        self._resolver_options: dict[str, Any] = {}
        self._steps: list[Callable[[Resolver], object]] = []
        self._target: type[Any] | None = None
        self._resolver: Resolver | None = None

    def target(self, dependency: type[Any]) -> ResolverBuilder[Any]:
        """Select the type returned by ``build``."""
        self._target = dependency
        return cast("ResolverBuilder[Any]", self)

    def double(self, *dependencies: type[Any]) -> ResolverBuilder[T]:
        self._steps.append(lambda resolver: resolver.force_double(*dependencies))
        return self

    def real(self, *dependencies: type[Any]) -> ResolverBuilder[T]:
        self._steps.append(lambda resolver: resolver.force_real(*dependencies))
        return self

    def instance(self, dependency: type[Any], instance: object) -> ResolverBuilder[T]:
        self._steps.append(lambda resolver: resolver.use_instance(dependency, instance))
        return self

    def double_with(
        self,
        dependency: type[Any],
        configure: Callable[[Any], object],
    ) -> ResolverBuilder[T]:
        self._steps.append(lambda resolver: resolver.double_with(dependency, configure))
        return self

    def double_factory(self, factory: DoubleFactory) -> ResolverBuilder[T]:
        self._resolver_options["double_factory"] = factory
        return self

    def default_strategy(self, strategy: DefaultValueStrategy) -> ResolverBuilder[T]:
        self._resolver_options["default_strategy"] = strategy
        return self

    def smart_doubles(self) -> ResolverBuilder[T]:
        self._resolver_options["smart_doubles"] = True
        return self

    def debug(self) -> ResolverBuilder[T]:
        self._resolver_options["debug"] = True
        return self

    def build_resolver(self) -> Resolver:
        """Create the resolver once and return it on every later call."""
        if self._resolver is None:
            resolver = Resolver(**self._resolver_options)
            for step in self._steps:
                step(resolver)
            self._resolver = resolver
        return self._resolver

    def build(self) -> T:
        """Resolve the selected target.

        Raises:
            StandInInvalidConfigurationError: If ``target`` was never called.

        """
        if self._target is None:
            msg = "No target type selected. Call target() before build()."
            raise StandInInvalidConfigurationError(msg)
        return cast("T", self.build_resolver().get_instance(self._target))
