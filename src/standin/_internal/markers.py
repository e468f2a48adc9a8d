from __future__ import annotations

from typing import TYPE_CHECKING, Annotated, Any, TypeVar, Union, get_args, get_origin

T = TypeVar("T")
_ANNOTATED_MARKER_MIN_ARGS = 2


class DoubleMarker:
    """Marker for parameters that receive a test double registered in the resolver."""


class SpyMarker:
    """Marker for parameters that receive a spy wrapping a real instance."""


class SubjectMarker:
    """Marker for parameters that receive an instance built by the resolver."""


ParameterMarker = Union[DoubleMarker, SpyMarker, SubjectMarker]


if TYPE_CHECKING:
    Double = Union[T, T]  # noqa: UP007,PYI016
    """Request a double for ``T`` and register it for the rest of the graph.

    At runtime ``Double[T]`` becomes ``Annotated[T, DoubleMarker()]``.
    """

    Spy = Union[T, T]  # noqa: UP007,PYI016
    """Request a spy around a real ``T`` and register it for the rest of the graph.

    At runtime ``Spy[T]`` becomes ``Annotated[T, SpyMarker()]``.
    """

    Subject = Union[T, T]  # noqa: UP007,PYI016
    """Request ``T`` built by the resolver after doubles and spies are registered.

    At runtime ``Subject[T]`` becomes ``Annotated[T, SubjectMarker()]``.
    """

else:

    class Double:
        """Request a double for ``T`` and register it for the rest of the graph.

        At runtime ``Double[T]`` resolves to ``Annotated[T, DoubleMarker()]``.

        Examples:
            .. code-block:: python

                def test_total(repository: Double[Repository], report: Subject[Report]) -> None:
                    repository.count.return_value = 3
                    assert report.total() == 3

        """

        def __class_getitem__(cls, item: T) -> Annotated[T, DoubleMarker]:
            return _build_marker_annotation(item, DoubleMarker())

    class Spy:
        """Request a spy around a real ``T`` and register it for the rest of the graph.

        At runtime ``Spy[T]`` resolves to ``Annotated[T, SpyMarker()]``.
        """

        def __class_getitem__(cls, item: T) -> Annotated[T, SpyMarker]:
            return _build_marker_annotation(item, SpyMarker())

    class Subject:
        """Request ``T`` built by the resolver after doubles and spies are registered.

        At runtime ``Subject[T]`` resolves to ``Annotated[T, SubjectMarker()]``.
        """

        def __class_getitem__(cls, item: T) -> Annotated[T, SubjectMarker]:
            return _build_marker_annotation(item, SubjectMarker())


def extract_marker(annotation: Any) -> tuple[Any, ParameterMarker] | None:
    """Return ``(inner_type, marker)`` for marked annotations, otherwise ``None``."""
    if get_origin(annotation) is not Annotated:
        return None
    annotation_args = get_args(annotation)
    if len(annotation_args) < _ANNOTATED_MARKER_MIN_ARGS:
        return None
    for item in annotation_args[1:]:
        if isinstance(item, (DoubleMarker, SpyMarker, SubjectMarker)):
            return annotation_args[0], item
    return None


def _build_marker_annotation(item: Any, marker: ParameterMarker) -> Any:
    if get_origin(item) is Annotated:
        args = get_args(item)
        return _build_annotated((args[0], *args[1:], marker))
    return _build_annotated((item, marker))


def _build_annotated(params: tuple[object, ...]) -> Any:
    try:
        return Annotated.__class_getitem__(params)  # type: ignore[attr-defined]
    except AttributeError:
        return Annotated.__getitem__(params)  # type: ignore[attr-defined]
