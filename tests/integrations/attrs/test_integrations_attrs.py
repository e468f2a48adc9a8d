"""Tests for attrs integration."""

import attrs

from standin import Resolver


class DepService:
    pass


@attrs.define
class AttrsModelWithDep:
    dep: DepService


@attrs.define
class NestedAttrsModel:
    model: AttrsModelWithDep


@attrs.define
class AttrsModelWithDefault:
    dep: DepService
    name: str = "default"


@attrs.frozen
class FrozenAttrsModel:
    dep: DepService


@attrs.define
class EmptyAttrsModel:
    pass


class TestAttrsResolution:
    def test_resolve_attrs_model_with_dependency(self, resolver: Resolver) -> None:
        result = resolver.get_instance(AttrsModelWithDep)

        assert isinstance(result, AttrsModelWithDep)
        assert isinstance(result.dep, DepService)

    def test_resolve_empty_attrs_model(self, resolver: Resolver) -> None:
        assert isinstance(resolver.get_instance(EmptyAttrsModel), EmptyAttrsModel)

    def test_resolve_nested_attrs_models(self, resolver: Resolver) -> None:
        result = resolver.get_instance(NestedAttrsModel)

        assert result.model is resolver.get_instance(AttrsModelWithDep)
        assert result.model.dep is resolver.get_instance(DepService)

    def test_attrs_defaults_are_kept(self, resolver: Resolver) -> None:
        result = resolver.get_instance(AttrsModelWithDefault)

        assert result.name == "default"

    def test_resolve_frozen_attrs_model(self, resolver: Resolver) -> None:
        result = resolver.get_instance(FrozenAttrsModel)

        assert isinstance(result.dep, DepService)
