"""Build-time generation of metering entry modules for tenant code."""

from gatehouse.wrapper.errors import WrapperValidationError
from gatehouse.wrapper.generator import WrapperGenerator, generate_metering_wrapper
from gatehouse.wrapper.models import (
    VectorBinding,
    WrapperMode,
    WrapperPlan,
    WrapperSpec,
)

__all__ = [
    "VectorBinding",
    "WrapperGenerator",
    "WrapperMode",
    "WrapperPlan",
    "WrapperSpec",
    "WrapperValidationError",
    "generate_metering_wrapper",
]
