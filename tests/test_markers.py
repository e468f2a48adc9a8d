from typing import Annotated, get_args, get_origin

import pytest

from standin import Double, Spy, Subject
from standin._internal.markers import DoubleMarker, SpyMarker, SubjectMarker, extract_marker


class Service:
    pass


@pytest.mark.parametrize(
    ("alias", "marker_type"),
    [(Double, DoubleMarker), (Spy, SpyMarker), (Subject, SubjectMarker)],
)
def test_alias_builds_annotated_marker(alias: object, marker_type: type) -> None:
    annotation = alias[Service]  # type: ignore[index]

    assert get_origin(annotation) is Annotated
    inner, marker = get_args(annotation)
    assert inner is Service
    assert isinstance(marker, marker_type)


def test_extract_marker_returns_inner_type_and_marker() -> None:
    extracted = extract_marker(Double[Service])

    assert extracted is not None
    inner, marker = extracted
    assert inner is Service
    assert isinstance(marker, DoubleMarker)


def test_extract_marker_keeps_existing_metadata() -> None:
    annotation = Subject[Annotated[Service, "meta"]]

    extracted = extract_marker(annotation)

    assert extracted is not None
    assert extracted[0] is Service
    assert isinstance(extracted[1], SubjectMarker)
    assert "meta" in get_args(annotation)


@pytest.mark.parametrize("annotation", [Service, int, Annotated[Service, "meta"], None])
def test_extract_marker_ignores_unmarked_annotations(annotation: object) -> None:
    assert extract_marker(annotation) is None
