"""Tests for NamedTuple construction."""

from typing import NamedTuple

from standin import Resolver


class Left:
    pass


class Right:
    pass


class Pair(NamedTuple):
    left: Left
    right: Right
    label: str = "pair"


class TestNamedTupleResolution:
    def test_resolve_namedtuple_fields(self, resolver: Resolver) -> None:
        pair = resolver.get_instance(Pair)

        assert pair.left is resolver.get_instance(Left)
        assert pair.right is resolver.get_instance(Right)
        assert pair.label == "pair"
