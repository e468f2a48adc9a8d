from __future__ import annotations

import datetime
import decimal
import enum
import inspect
import logging
import pathlib
import threading
import uuid
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, get_type_hints

from typing_extensions import Self

from standin._internal.type_checks import is_interface_or_abstract, is_runtime_class
from standin.exceptions import StandInNotInstantiableError

logger = logging.getLogger(__name__)

INIT_CONSTRUCTOR_NAME = "__init__"
_SELF_RETURN_NAMES = frozenset({"Self", "typing.Self", "typing_extensions.Self"})
_SKIPPED_PARAMETER_KINDS = frozenset(
    {inspect.Parameter.VAR_POSITIONAL, inspect.Parameter.VAR_KEYWORD},
)


@dataclass(frozen=True, slots=True)
class ConstructorParameter:
    """A single constructor parameter.

    ``dependency`` is ``None`` when the parameter keeps its default value
    instead of being resolved.
    """

    name: str
    dependency: type[Any] | None
    kind: inspect._ParameterKind
    has_default: bool


@dataclass(frozen=True, slots=True)
class ConstructorDescriptor:
    """The constructor chosen to build real instances of ``owner``.

    ``name`` is ``"__init__"`` for regular instantiation or the name of an
    alternate ``classmethod`` constructor.
    """

    owner: type[Any]
    name: str
    parameters: tuple[ConstructorParameter, ...]
    is_public: bool
    factory: Callable[..., Any]

    @property
    def arity(self) -> int:
        return len(self.parameters)

    @property
    def dependencies(self) -> tuple[ConstructorParameter, ...]:
        """Parameters resolved from the graph, in declaration order."""
        return tuple(parameter for parameter in self.parameters if parameter.dependency is not None)

    def invoke(self, arguments: Mapping[str, Any]) -> Any:
        """Call the constructor with resolved ``arguments`` keyed by parameter name."""
        args: list[Any] = []
        kwargs: dict[str, Any] = {}
        for parameter in self.parameters:
            if parameter.name not in arguments:
                continue
            if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                args.append(arguments[parameter.name])
            else:
                kwargs[parameter.name] = arguments[parameter.name]
        return self.factory(*args, **kwargs)


@dataclass(frozen=True, slots=True)
class _Candidate:
    name: str
    is_public: bool
    factory: Callable[..., Any]
    signature: inspect.Signature
    type_hints: dict[str, Any]


class ConstructorSelector:
    """Pick one constructor per class for real-object construction.

    Candidates are ``__init__`` (always public, always first) followed by every
    ``classmethod`` declared in the class body whose return annotation is the
    class itself or ``Self``. Such alternate constructors are public unless
    their name starts with an underscore.

    Among usable candidates the public ones are preferred; the one with the
    most parameters wins and ties go to the first declared. When no public
    candidate is usable the selector falls back to non-public ones with the same
    rule.

    A candidate is unusable when a parameter without a default lacks a class
    annotation. Parameters with a default keep it when their annotation is not
    a class or is a plain value type (builtins, paths, dates, UUIDs, decimals,
    enums).

    Selections are cached per class until ``reset``.
    """

    value_types: tuple[type[Any], ...] = (
        pathlib.PurePath,
        datetime.datetime,
        datetime.date,
        datetime.time,
        datetime.timedelta,
        uuid.UUID,
        decimal.Decimal,
        enum.Enum,
    )

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._selected: dict[type[Any], ConstructorDescriptor] = {}

    def select_constructor(self, dependency: type[Any]) -> ConstructorDescriptor:
        """Return the constructor used to build ``dependency`` for real.

        Raises:
            StandInNotInstantiableError: If ``dependency`` is a protocol or an
                abstract class, or has no usable constructor.

        """
        cached = self._selected.get(dependency)
        if cached is not None:
            return cached

        if is_interface_or_abstract(dependency):
            raise StandInNotInstantiableError(
                dependency,
                "interfaces, protocols and abstract classes cannot be built for real",
            )

        usable: list[ConstructorDescriptor] = []
        rejected: list[str] = []
        for candidate in self._iter_candidates(dependency):
            parameters = self._build_parameters(candidate)
            if isinstance(parameters, str):
                rejected.append(f"{candidate.name}: {parameters}")
                continue
            usable.append(
                ConstructorDescriptor(
                    owner=dependency,
                    name=candidate.name,
                    parameters=parameters,
                    is_public=candidate.is_public,
                    factory=candidate.factory,
                ),
            )

        public = [descriptor for descriptor in usable if descriptor.is_public]
        pool = public or usable
        if not pool:
            reason = "no usable constructor"
            if rejected:
                reason = f"{reason} ({'; '.join(rejected)})"
            raise StandInNotInstantiableError(dependency, reason)

        selected = max(pool, key=lambda descriptor: descriptor.arity)
        if not public:
            logger.debug(
                "No public constructor for %s, using non-public %s",
                dependency.__qualname__,
                selected.name,
            )

        with self._lock:
            return self._selected.setdefault(dependency, selected)

    def reset(self) -> None:
        with self._lock:
            self._selected.clear()

    def _iter_candidates(self, owner: type[Any]) -> list[_Candidate]:
        try:
            init_signature = inspect.signature(owner)
        except (TypeError, ValueError):
            # Builtins such as ``str`` expose no introspectable signature.
            init_signature = inspect.Signature()

        init_hints = {
            **self._type_hints(owner, owner),
            **self._type_hints(owner.__init__, owner),
        }
        candidates = [
            _Candidate(
                name=INIT_CONSTRUCTOR_NAME,
                is_public=True,
                factory=owner,
                signature=init_signature,
                type_hints=init_hints,
            ),
        ]

        for name, attribute in vars(owner).items():
            if not isinstance(attribute, classmethod):
                continue
            function = attribute.__func__
            if not self._returns_owner(function, owner):
                continue
            factory = getattr(owner, name)
            try:
                signature = inspect.signature(factory)
            except (TypeError, ValueError):
                continue
            candidates.append(
                _Candidate(
                    name=name,
                    is_public=not name.startswith("_"),
                    factory=factory,
                    signature=signature,
                    type_hints=self._type_hints(function, owner),
                ),
            )
        return candidates

    def _build_parameters(self, candidate: _Candidate) -> tuple[ConstructorParameter, ...] | str:
        parameters: list[ConstructorParameter] = []
        positional_gap = False
        for parameter in candidate.signature.parameters.values():
            if parameter.kind in _SKIPPED_PARAMETER_KINDS:
                continue

            has_default = parameter.default is not inspect.Parameter.empty
            annotation = candidate.type_hints.get(parameter.name, parameter.annotation)
            injectable = self._is_injectable(annotation)
            # Positional-only arguments cannot skip an omitted earlier one, so
            # every later positional-only parameter keeps its default too.
            keeps_default = has_default and (
                not injectable
                or self._is_value_type(annotation)
                or (positional_gap and parameter.kind is inspect.Parameter.POSITIONAL_ONLY)
            )

            if keeps_default:
                if parameter.kind is inspect.Parameter.POSITIONAL_ONLY:
                    positional_gap = True
                dependency = None
            elif injectable:
                dependency = annotation
            else:
                return f"parameter '{parameter.name}' has no class annotation"

            parameters.append(
                ConstructorParameter(
                    name=parameter.name,
                    dependency=dependency,
                    kind=parameter.kind,
                    has_default=has_default,
                ),
            )
        return tuple(parameters)

    def _is_injectable(self, annotation: Any) -> bool:
        if annotation is inspect.Parameter.empty or annotation is Any:
            return False
        return is_runtime_class(annotation)

    def _is_value_type(self, annotation: type[Any]) -> bool:
        if annotation.__module__ == "builtins":
            return True
        return issubclass(annotation, self.value_types)

    def _returns_owner(self, function: Callable[..., Any], owner: type[Any]) -> bool:
        try:
            annotations = dict(getattr(function, "__annotations__", {}))
        except NameError:
            return False

        returned = annotations.get("return")
        if returned is owner or returned is Self:
            return True
        if isinstance(returned, str):
            name = returned.strip("'\"")
            return name in _SELF_RETURN_NAMES or name in {owner.__name__, owner.__qualname__}
        return False

    def _type_hints(self, target: Any, owner: type[Any]) -> dict[str, Any]:
        try:
            return get_type_hints(target, localns={owner.__name__: owner})
        except (AttributeError, NameError, TypeError):
            return {}
