from __future__ import annotations

from typing import Any


def _describe(dependency: Any) -> str:
    qualname = getattr(dependency, "__qualname__", None)
    if qualname is None:
        return repr(dependency)
    return qualname


class StandInError(Exception):
    """Represent a base class for all standin-specific failures.

    Catch this type when you want to handle any resolution failure without
    matching each concrete exception class individually.
    """


class StandInNullTypeError(StandInError, TypeError):
    """Signal that a resolution or registration was requested without a usable type.

    Raised by ``Resolver.get_instance``, ``Resolver.register_instance`` and the
    override methods when the dependency is ``None`` or is not a runtime class
    (for example an instance, a string or a parametrized generic such as
    ``list[int]``).

    Typical fix is passing the class object itself, e.g. ``get_instance(Service)``.
    """

    def __init__(self, dependency: Any) -> None:
        self.dependency = dependency
        super().__init__(f"Expected a class to resolve, got {dependency!r}.")


class StandInCycleDetectedError(StandInError):
    """Signal reentrant construction of a type already being built.

    ``path`` lists every type in creation order, with the offending type
    repeated at the end (``(A, B, A)`` for ``A -> B -> A``).

    Typical fixes include registering one of the types up front with
    ``Resolver.register_instance``, forcing one side of the cycle to a double
    with ``Resolver.force_double``, or breaking the cycle in the design.
    """

    def __init__(self, path: tuple[type[Any], ...]) -> None:
        self.path = path
        rendered = " -> ".join(_describe(item) for item in path)
        super().__init__(f"Circular dependency detected: {rendered}")

    def format_path(self) -> str:
        """Render the cycle path one type per line, fully qualified."""
        return "\n  -> ".join(f"{item.__module__}.{_describe(item)}" for item in self.path)


class StandInNotInstantiableError(StandInError):
    """Signal that a real object cannot be constructed for a type.

    Raised when an interface, protocol or abstract class must be built for real
    (usually because of ``Resolver.force_real``) or when the class exposes no
    usable constructor, e.g. every constructor requires an unannotated
    parameter.

    Typical fixes include removing the ``force_real`` override, annotating
    constructor parameters, or registering an instance for the type.
    """

    def __init__(self, dependency: type[Any], reason: str) -> None:
        self.dependency = dependency
        self.reason = reason
        super().__init__(f"Cannot instantiate '{_describe(dependency)}': {reason}")


class StandInConstructionFailedError(StandInError):
    """Signal that the selected constructor (or double factory) raised.

    ``cause`` holds the underlying exception, which is also chained as
    ``__cause__``.
    """

    def __init__(self, dependency: type[Any], cause: BaseException) -> None:
        self.dependency = dependency
        self.cause = cause
        super().__init__(
            f"Failed to create instance of '{_describe(dependency)}': "
            f"{type(cause).__name__}: {cause}",
        )


class StandInInvalidConfigurationError(StandInError):
    """Signal invalid resolver builder usage.

    Raised by ``ResolverBuilder.build`` when no target type was selected with
    ``ResolverBuilder.target``.
    """
