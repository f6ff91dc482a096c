"""Binder.

Resolves every leaf of a pydantic model against a source mapping, coerces the
text into the field's type and assigns it in place.

Resolution order for each key:
1. Source value (files, then process environment; see `svc_env.sources`)
2. Declared default (`Env(default=...)`)
3. Missing: an error if `Env(required=True)`, otherwise the field keeps its
   current value

Per-field problems are collected and raised together as one `BindError`.
"""

import os
from collections.abc import Mapping
from datetime import datetime, timedelta
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic.fields import FieldInfo

from svc_env.coerce import coerce
from svc_env.exceptions import (
    BindError,
    CoercionError,
    FieldError,
    InvalidValueError,
    MissingRequiredError,
    ShapeError,
)
from svc_env.fields import (
    FieldDescriptor,
    Kind,
    Sequence,
    describe,
    env_options,
    is_record_type,
    record_type,
    semantic_type,
    unwrap_optional,
)
from svc_env.sources import aggregate
from svc_obs.logging import get_logger

logger = get_logger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)

ZERO_VALUES = {
    Kind.STR: "",
    Kind.INT: 0,
    Kind.UINT: 0,
    Kind.FLOAT: 0.0,
    Kind.BOOL: False,
    Kind.DURATION: timedelta(0),
    Kind.TIMESTAMP: datetime.min,
}


def bind(target: ModelT, source: Mapping[str, str]) -> ModelT:
    """Populate `target` in place from a source mapping.

    Args:
        target: Model instance to fill
        source: Upper-cased key -> text mapping (see `aggregate`)

    Returns:
        The same `target`, populated

    Raises:
        ShapeError: If `target` is not a model instance
        BindError: If any field is missing or malformed. `target` may be
            partially populated.
    """
    if isinstance(target, type) or not isinstance(target, BaseModel):
        raise ShapeError(f"target must be a pydantic model instance, got {target!r}")

    lookup = {key.upper(): value for key, value in source.items()}
    errors: list[FieldError] = []
    bound = 0

    for descriptor in describe(type(target)):
        if _bind_field(target, descriptor, lookup, errors):
            bound += 1

    logger.debug(
        "config_bound",
        model=type(target).__name__,
        fields=bound,
        errors=len(errors),
    )

    if errors:
        raise BindError(errors)
    return target


def _bind_field(
    target: BaseModel,
    descriptor: FieldDescriptor,
    source: Mapping[str, str],
    errors: list[FieldError],
) -> bool:
    raw = source.get(descriptor.key, "")
    if raw == "":
        if descriptor.default is not None:
            raw = descriptor.default
        elif descriptor.required:
            errors.append(MissingRequiredError(descriptor.key))
            return False
        else:
            return False

    try:
        value = coerce(raw, descriptor.semantic, descriptor.sep)
    except CoercionError as e:
        errors.append(InvalidValueError(descriptor.key, e.type_name, e.detail))
        return False

    owner = _section_for(target, descriptor)
    setattr(owner, descriptor.name, value)
    return True


def _section_for(target: BaseModel, descriptor: FieldDescriptor) -> BaseModel:
    """Walk to the model that owns the leaf, allocating empty sections."""
    owner = target
    for attr, section in zip(descriptor.path[:-1], descriptor.sections):
        child = getattr(owner, attr, None)
        if child is None:
            child = new_record(section)
            setattr(owner, attr, child)
        owner = child
    return owner


def new_record(model_cls: type[ModelT]) -> ModelT:
    """Build a model instance without validation.

    Fields with a pydantic default keep it; other fields get the zero value of
    their type, non-optional sections are built recursively and optional
    sections stay None until a value is bound into them.
    """
    if not is_record_type(model_cls):
        raise ShapeError(f"expected a pydantic model class, got {model_cls!r}")

    values = {}
    for name, info in model_cls.model_fields.items():
        if not info.is_required():
            continue
        if env_options(info.metadata).ignore:
            # ignored fields only get a zero value when their type has one
            try:
                values[name] = _zero_value(info)
            except ShapeError:
                continue
        else:
            values[name] = _zero_value(info)
    return model_cls.model_construct(**values)


def _zero_value(info: FieldInfo) -> Any:
    section, optional = record_type(info.annotation)
    if section is not None:
        return None if optional else new_record(section)

    _, optional = unwrap_optional(info.annotation)
    if optional:
        return None

    semantic = semantic_type(info.annotation, info.metadata)
    if isinstance(semantic, Sequence):
        return []
    return ZERO_VALUES[semantic.kind]


def load(target: ModelT, *files: str | os.PathLike) -> ModelT:
    """Bind from override files plus the live process environment."""
    return bind(target, aggregate(files, include_process_env=True))


def load_env(target: ModelT) -> ModelT:
    """Bind from the live process environment only."""
    return bind(target, aggregate((), include_process_env=True))


def load_file(target: ModelT, *files: str | os.PathLike) -> ModelT:
    """Bind from override files only."""
    return bind(target, aggregate(files, include_process_env=False))
