from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING, Any, TypeVar, cast

from standin._internal.constructors import ConstructorSelector
from standin._internal.doubles import (
    DefaultValueStrategy,
    DoubleFactory,
    MockDoubleFactory,
    SmartDefaults,
)
from standin._internal.policy import Policy
from standin._internal.resolution_context import ResolutionContext
from standin._internal.type_checks import is_runtime_class
from standin.exceptions import (
    StandInConstructionFailedError,
    StandInError,
    StandInNullTypeError,
)

if TYPE_CHECKING:
    from standin._internal.builder import ResolverBuilder

T = TypeVar("T")

logger = logging.getLogger(__name__)
_package_logger = logging.getLogger("standin")


class Resolver:
    """Build test subjects and their dependency graphs on demand.

    Protocols and abstract classes resolve to test doubles, concrete classes are
    built for real by resolving their constructor parameters recursively. Every
    type is built at most once per resolver; repeated lookups return the same
    instance until ``reset``.

    The resolver is safe to share between threads. Cycle detection is scoped
    to one call path, so cycles spanning threads are not detected.

    Examples:
        .. code-block:: python

            resolver = Resolver(smart_doubles=True)
            manager = resolver.get_instance(Manager)
            service = resolver.get_instance(Service)  # the double inside manager

    """

    def __init__(
        self,
        *,
        double_factory: DoubleFactory | None = None,
        default_strategy: DefaultValueStrategy | None = None,
        smart_doubles: bool = False,
        debug: bool = False,
    ) -> None:
        """Initialize an empty resolver.

        Args:
            double_factory: Factory used when the policy selects a double.
                Defaults to ``MockDoubleFactory``.
            default_strategy: Strategy configuring what unconfigured double
                methods return. ``None`` keeps the mock library defaults.
            smart_doubles: Use ``SmartDefaults`` when no strategy is given.
            debug: Lower the ``standin`` logger to ``DEBUG`` to trace resolution.

        """
        if default_strategy is None and smart_doubles:
            default_strategy = SmartDefaults()

        self._double_factory: DoubleFactory = double_factory or MockDoubleFactory()
        self._default_strategy = default_strategy
        self._policy = Policy()
        self._constructor_selector = ConstructorSelector()
        self._lock = threading.Lock()
        self._instances: dict[type[Any], Any] = {}
        self._user_instances: dict[type[Any], Any] = {}

        if debug:
            _package_logger.setLevel(logging.DEBUG)

    @staticmethod
    def builder() -> ResolverBuilder:
        """Return a fluent builder for a new resolver."""
        from standin._internal.builder import ResolverBuilder  # noqa: PLC0415

        return ResolverBuilder()

    @property
    def policy(self) -> Policy:
        return self._policy

    @property
    def constructor_selector(self) -> ConstructorSelector:
        return self._constructor_selector

    @property
    def default_strategy(self) -> DefaultValueStrategy | None:
        return self._default_strategy

    def get_instance(self, dependency: type[T], *, context: ResolutionContext | None = None) -> T:
        """Return the instance for ``dependency``, building it on first use.

        Args:
            dependency: Class to resolve.
            context: Creation stack of the current call path. Root callers
                normally omit it and get a fresh one.

        Raises:
            StandInNullTypeError: If ``dependency`` is not a class.
            StandInCycleDetectedError: If ``dependency`` is already being built
                on this call path.
            StandInNotInstantiableError: If a real object is required for a
                type that cannot be constructed.
            StandInConstructionFailedError: If a constructor or the double
                factory raised.

        """
        self._validate(dependency)

        cached = self._instances.get(dependency, _MISSING)
        if cached is not _MISSING:
            logger.debug("Returning cached instance for %s", dependency.__qualname__)
            return cast("T", cached)

        user_instance = self._user_instances.get(dependency, _MISSING)
        if user_instance is not _MISSING:
            logger.debug("Returning user instance for %s", dependency.__qualname__)
            return cast("T", self._publish(dependency, user_instance))

        if context is None:
            context = ResolutionContext()

        with context.enter(dependency):
            instance = self._build(dependency, context)
        return cast("T", self._publish(dependency, instance))

    def register_instance(self, dependency: type[T], instance: T) -> None:
        """Place ``instance`` in the cache, replacing anything already cached."""
        self._validate(dependency)
        with self._lock:
            self._instances[dependency] = instance

    def use_instance(self, dependency: type[T], instance: T) -> None:
        """Record ``instance`` to be returned whenever ``dependency`` is first resolved.

        User instances win over doubles and real construction but do not replace
        an instance that is already cached.
        """
        self._validate(dependency)
        with self._lock:
            self._user_instances[dependency] = instance

    def double_with(self, dependency: type[T], configure: Callable[[T], object]) -> T:
        """Force ``dependency`` to a double, configure it now and record it as a user instance.

        Returns:
            The configured double.

        """
        self.force_double(dependency)
        double = cast("T", self._build_double(dependency))
        configure(double)
        self.use_instance(dependency, double)
        return double

    def replace_with_double(self, dependency: type[T]) -> T:
        """Force ``dependency`` to a double and place a new one in the cache.

        Unlike ``force_double``, this replaces an instance that is already
        cached. Objects built earlier keep the instance they were given.

        Returns:
            The new double.

        """
        self.force_double(dependency)
        double = cast("T", self._build_double(dependency))
        self.register_instance(dependency, double)
        logger.debug("Replaced %s with a new double", dependency.__qualname__)
        return double

    def force_double(self, *dependencies: type[Any]) -> None:
        """Always substitute ``dependencies`` by doubles.

        Configure overrides before the affected types are first resolved; cached
        instances are not replaced.
        """
        for dependency in dependencies:
            self._validate(dependency)
        self._policy.force_double(dependencies)

    def force_real(self, *dependencies: type[Any]) -> None:
        """Always build ``dependencies`` for real, even protocols and abstract classes.

        Forcing an interface to be real makes its resolution fail with
        ``StandInNotInstantiableError``.
        """
        for dependency in dependencies:
            self._validate(dependency)
        self._policy.force_real(dependencies)

    def reset(self, context: ResolutionContext | None = None) -> None:
        """Return the resolver to its initial state.

        Clears cached and user instances, policy overrides and memoized
        decisions. Factory, strategy and logging configuration are kept.

        The resolver holds no execution context of its own: only ``context`` is
        cleared, and with no argument nothing beyond the resolver state is
        touched. Contexts created for root calls are already discarded.
        """
        with self._lock:
            self._instances.clear()
            self._user_instances.clear()
        self._policy.reset()
        self._constructor_selector.reset()
        self.clear_execution_context(context)

    def clear_execution_context(self, context: ResolutionContext | None = None) -> None:
        """Empty a caller-owned creation stack before it is reused.

        A no-op when ``context`` is ``None``: root calls that pass no context
        get a fresh one per call, so there is no shared stack to clear.
        """
        if context is not None:
            context.clear()

    def _validate(self, dependency: object) -> None:
        if dependency is None or not is_runtime_class(dependency):
            raise StandInNullTypeError(dependency)

    def _build(self, dependency: type[Any], context: ResolutionContext) -> Any:
        if self._policy.should_build_double(dependency):
            logger.debug("Creating double for %s", dependency.__qualname__)
            return self._build_double(dependency)

        logger.debug("Creating real instance for %s", dependency.__qualname__)
        constructor = self._constructor_selector.select_constructor(dependency)
        arguments = {
            parameter.name: self.get_instance(parameter.dependency, context=context)
            for parameter in constructor.dependencies
            if parameter.dependency is not None
        }
        try:
            return constructor.invoke(arguments)
        except Exception as error:
            raise StandInConstructionFailedError(dependency, error) from error

    def _build_double(self, dependency: type[Any]) -> Any:
        try:
            return self._double_factory.build_double(dependency, self._default_strategy)
        except StandInError:
            raise
        except Exception as error:
            raise StandInConstructionFailedError(dependency, error) from error

    def _publish(self, dependency: type[Any], instance: Any) -> Any:
        with self._lock:
            published = self._instances.setdefault(dependency, instance)
        if published is not instance:
            logger.debug(
                "Discarding instance of %s built concurrently, another caller published first",
                dependency.__qualname__,
            )
        return published


def create_instance(dependency: type[T]) -> T:
    """Build ``dependency`` with a throwaway ``Resolver``."""
    return Resolver().get_instance(dependency)


class _Missing:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<missing>"


_MISSING: Any = _Missing()
