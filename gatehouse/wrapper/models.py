"""Wrapper spec (input) and wrapper plan (validated intermediate form).

WrapperSpec accepts the control plane's camelCase names as well as
snake_case field names:

    {
        "originalModule": "worker",
        "projectId": "proj_123",
        "orgId": "org_456",
        "doClassNames": ["Counter"],
        "vectorizeBindings": [{"bindingName": "VECTORS", "indexName": "idx"}]
    }
"""

import keyword
from enum import Enum
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, model_validator

# Names the generated module defines itself; actor classes may not shadow them.
RESERVED_NAMES: frozenset[str] = frozenset({
    "ACTOR_USAGE_BINDING",
    "Any",
    "Mapping",
    "ORG_ID",
    "PROJECT_ID",
    "VECTOR_BINDINGS",
    "VECTOR_PROXY_BINDING",
    "contextvars",
    "create_vector_index_client",
    "default",
    "functools",
    "inspect",
    "time",
    "wrap_actor",
    "wrap_vector_index",
    "_ACTIVE_ACTORS",
    "_HandlerInterceptor",
    "_MeteredEnv",
    "_binding",
    "_record_actor_call",
    "_rewrite_env",
    "_wrap_env",
})

ORIGINAL_PREFIX = "_orig_"


def is_valid_identifier(name: str) -> bool:
    """ASCII Python identifier that is not a keyword."""
    return name.isascii() and name.isidentifier() and not keyword.iskeyword(name)


def validate_class_name(name: str) -> str:
    if not is_valid_identifier(name):
        raise ValueError(f"Invalid class name: {name!r}")
    is_dunder = name.startswith("__") and name.endswith("__")
    if name in RESERVED_NAMES or name.startswith(ORIGINAL_PREFIX) or is_dunder:
        raise ValueError(f"Invalid class name: {name!r} is reserved")
    return name


def normalize_module_ref(ref: str) -> str:
    """Turn a file-ish reference into a dotted module path.

    "./src/worker.py" -> "src.worker", "worker" -> "worker"
    """
    module = ref.strip()
    while module.startswith("./"):
        module = module[2:]
    if module.endswith(".py"):
        module = module[:-3]
    module = module.replace("/", ".")

    if not module:
        raise ValueError("originalModule must not be empty")
    if not all(is_valid_identifier(part) for part in module.split(".")):
        raise ValueError(f"Invalid module reference: {ref!r}")
    return module


def validate_binding_name(name: str) -> str:
    if not name.isascii() or not name.isidentifier():
        raise ValueError(f"Invalid binding name: {name!r}")
    return name


ClassName = Annotated[str, AfterValidator(validate_class_name)]
ModuleRef = Annotated[str, AfterValidator(normalize_module_ref)]
BindingName = Annotated[str, AfterValidator(validate_binding_name)]


class VectorBinding(BaseModel):
    """An env binding to replace with a proxy-backed vector index client."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    binding_name: BindingName = Field(alias="bindingName")
    index_name: str = Field(alias="indexName", min_length=1)


class WrapperSpec(BaseModel):
    """What to wrap in a tenant module."""

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    original_module: ModuleRef = Field(alias="originalModule")
    project_id: str = Field(alias="projectId", min_length=1)
    org_id: str = Field(alias="orgId", min_length=1)
    do_class_names: list[ClassName] = Field(default_factory=list, alias="doClassNames")
    vectorize_bindings: list[VectorBinding] = Field(
        default_factory=list, alias="vectorizeBindings"
    )

    @model_validator(mode="after")
    def check_targets(self) -> "WrapperSpec":
        if not self.do_class_names and not self.vectorize_bindings:
            raise ValueError("At least one of doClassNames or vectorizeBindings is required")

        if len(set(self.do_class_names)) != len(self.do_class_names):
            raise ValueError("Duplicate class name in doClassNames")

        binding_names = [b.binding_name for b in self.vectorize_bindings]
        if len(set(binding_names)) != len(binding_names):
            raise ValueError("Duplicate binding name in vectorizeBindings")
        return self


class WrapperMode(str, Enum):
    """Which wrapping the entry module performs."""

    ACTORS = "actors"
    VECTOR = "vector"
    COMBINED = "combined"


class WrapperPlan(BaseModel):
    """Everything the template needs, already validated."""

    model_config = ConfigDict(frozen=True)

    mode: WrapperMode
    module: str
    project_id: str
    org_id: str
    actor_classes: tuple[str, ...] = ()
    vector_bindings: tuple[VectorBinding, ...] = ()

    @property
    def wraps_actors(self) -> bool:
        return self.mode in (WrapperMode.ACTORS, WrapperMode.COMBINED)

    @property
    def wraps_vectors(self) -> bool:
        return self.mode in (WrapperMode.VECTOR, WrapperMode.COMBINED)

    @property
    def exports(self) -> list[str]:
        return ["default", *self.actor_classes]

    @classmethod
    def from_spec(cls, spec: WrapperSpec) -> "WrapperPlan":
        if spec.do_class_names and spec.vectorize_bindings:
            mode = WrapperMode.COMBINED
        elif spec.do_class_names:
            mode = WrapperMode.ACTORS
        else:
            mode = WrapperMode.VECTOR

        return cls(
            mode=mode,
            module=spec.original_module,
            project_id=spec.project_id,
            org_id=spec.org_id,
            actor_classes=tuple(spec.do_class_names),
            vector_bindings=tuple(spec.vectorize_bindings),
        )
