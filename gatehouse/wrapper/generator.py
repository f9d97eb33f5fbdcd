"""Metering wrapper generation.

Given a tenant module and what to meter in it, produce the source of a new
entry module that imports the original, wraps its actor classes and its
default export, and re-exports everything under the original names. The
tenant's own source is never modified.

Usage:

    from gatehouse.wrapper import generate_metering_wrapper

    source = generate_metering_wrapper({
        "originalModule": "worker",
        "projectId": "proj_123",
        "orgId": "org_456",
        "doClassNames": ["Counter"],
    })
"""

from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined
from pydantic import ValidationError

from gatehouse.observability.logging import get_logger
from gatehouse.wrapper.errors import WrapperValidationError
from gatehouse.wrapper.models import WrapperPlan, WrapperSpec

logger = get_logger(__name__)

_TEMPLATES_DIR = Path(__file__).parent / "templates"
ENTRY_TEMPLATE = "entry_module.py.j2"


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        message = item["msg"].removeprefix("Value error, ")
        location = ".".join(str(loc) for loc in item["loc"])
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


class WrapperGenerator:
    """Renders entry modules from validated wrapper plans."""

    def __init__(self, templates_dir: Path = _TEMPLATES_DIR) -> None:
        """Initialize the generator.

        Args:
            templates_dir: Directory containing the entry module template
        """
        self.env = Environment(
            loader=FileSystemLoader(str(templates_dir)),
            undefined=StrictUndefined,
            trim_blocks=True,
            lstrip_blocks=True,
            keep_trailing_newline=True,
            autoescape=False,
        )
        # Literals are emitted via repr() so any string is a valid Python literal
        self.env.filters["repr"] = repr

    def plan(self, spec: WrapperSpec | Mapping[str, Any]) -> WrapperPlan:
        """Validate a spec into a plan.

        Raises:
            WrapperValidationError: If the wrapper spec is invalid
        """
        if not isinstance(spec, WrapperSpec):
            try:
                spec = WrapperSpec.model_validate(dict(spec))
            except ValidationError as e:
                raise WrapperValidationError(_format_validation_error(e)) from e
        return WrapperPlan.from_spec(spec)

    def generate(self, spec: WrapperSpec | Mapping[str, Any]) -> str:
        """Generate the entry module source.

        The output is a deterministic function of the wrapper spec.

        Args:
            spec: WrapperSpec or its wire form

        Returns:
            Python source of the entry module

        Raises:
            WrapperValidationError: If the wrapper spec is invalid
        """
        plan = self.plan(spec)
        source = self.env.get_template(ENTRY_TEMPLATE).render(plan=plan)

        logger.info(
            "metering_wrapper_generated",
            project_id=plan.project_id,
            module=plan.module,
            mode=plan.mode.value,
            actor_count=len(plan.actor_classes),
            binding_count=len(plan.vector_bindings),
        )
        return source


@lru_cache(maxsize=1)
def _default_generator() -> WrapperGenerator:
    return WrapperGenerator()


def generate_metering_wrapper(spec: WrapperSpec | Mapping[str, Any]) -> str:
    """Generate the metering entry module for a tenant module.

    Raises:
        WrapperValidationError: On an empty or malformed module reference,
            an invalid or duplicate class name, or when there is nothing
            to wrap
    """
    return _default_generator().generate(spec)
