from standin._internal.builder import ResolverBuilder
from standin._internal.constructors import (
    ConstructorDescriptor,
    ConstructorParameter,
    ConstructorSelector,
)
from standin._internal.doubles import (
    DefaultValueStrategy,
    DoubleFactory,
    MockDoubleFactory,
    SmartDefaults,
)
from standin._internal.markers import Double, Spy, Subject
from standin._internal.policy import Policy
from standin._internal.resolution_context import ResolutionContext
from standin._internal.resolver import Resolver, create_instance
from standin.exceptions import (
    StandInConstructionFailedError,
    StandInCycleDetectedError,
    StandInError,
    StandInInvalidConfigurationError,
    StandInNotInstantiableError,
    StandInNullTypeError,
)

__all__ = [
    "ConstructorDescriptor",
    "ConstructorParameter",
    "ConstructorSelector",
    "DefaultValueStrategy",
    "Double",
    "DoubleFactory",
    "MockDoubleFactory",
    "Policy",
    "ResolutionContext",
    "Resolver",
    "ResolverBuilder",
    "SmartDefaults",
    "Spy",
    "StandInConstructionFailedError",
    "StandInCycleDetectedError",
    "StandInError",
    "StandInInvalidConfigurationError",
    "StandInNotInstantiableError",
    "StandInNullTypeError",
    "Subject",
    "create_instance",
]
