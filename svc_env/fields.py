"""Field Descriptors.

Per-field loader options are declared on pydantic models with `Annotated`:

    class Database(BaseModel):
        host: Annotated[str, Env(default="localhost")]
        port: Annotated[UInt16, Env(required=True)]
        replicas: Annotated[list[str], Env(sep=";")]

`describe()` walks a model class once and returns the flat list of leaf
descriptors the binder resolves. Nested models contribute their leaves under
`<SEGMENT>_`; `Section | None` fields are optional sections.
"""

import threading
import types
import typing
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Annotated, Any, Union

import annotated_types
from pydantic import BaseModel

from svc_env.exceptions import ShapeError

DEFAULT_SEP = ","


class Kind(str, Enum):
    """Scalar coercion targets."""

    STR = "string"
    INT = "int"
    UINT = "uint"
    FLOAT = "float"
    BOOL = "bool"
    DURATION = "duration"
    TIMESTAMP = "timestamp"


@dataclass(frozen=True)
class Env:
    """Loader options for one field.

    Attributes:
        name: Key segment override (default: field name, upper-cased)
        required: Fail the bind if no value and no default
        default: Fallback text, coerced like any source value
        sep: Item separator for list fields
        ignore: Skip the field entirely
    """

    name: str | None = None
    required: bool = False
    default: str | None = None
    sep: str = DEFAULT_SEP
    ignore: bool = False

    def __post_init__(self):
        # Empty strings mean "not set", as in the compact tag syntax
        if not self.name:
            object.__setattr__(self, "name", None)
        if self.default == "":
            object.__setattr__(self, "default", None)
        if not self.sep:
            object.__setattr__(self, "sep", DEFAULT_SEP)

    @classmethod
    def parse_tag(cls, tag: str) -> "Env":
        """Build options from the compact form `NAME,required,default=x,sep=;`.

        A tag of `-` ignores the field. Quotes around `default=` and `sep=`
        values are trimmed.
        """
        if tag.strip() == "-":
            return cls(ignore=True)

        parts = tag.split(",")
        name = parts[0].strip() or None
        required = False
        default = None
        sep = DEFAULT_SEP

        for part in parts[1:]:
            part = part.strip()
            if part == "required":
                required = True
            elif part.startswith("default="):
                default = part[len("default="):].strip("\"'")
            elif part.startswith("sep="):
                sep = part[len("sep="):].strip("\"'")

        return cls(name=name, required=required, default=default, sep=sep)


@dataclass(frozen=True)
class IntWidth:
    """Bit width and signedness of an integer field."""

    bits: int = 64
    signed: bool = True


Int8 = Annotated[int, IntWidth(8)]
Int16 = Annotated[int, IntWidth(16)]
Int32 = Annotated[int, IntWidth(32)]
Int64 = Annotated[int, IntWidth(64)]
UInt8 = Annotated[int, IntWidth(8, signed=False)]
UInt16 = Annotated[int, IntWidth(16, signed=False)]
UInt32 = Annotated[int, IntWidth(32, signed=False)]
UInt64 = Annotated[int, IntWidth(64, signed=False)]


@dataclass(frozen=True)
class Scalar:
    """A single value parsed from text."""

    kind: Kind
    bits: int = 64

    @property
    def type_name(self) -> str:
        return self.kind.value


@dataclass(frozen=True)
class Sequence:
    """A list of scalars split from one text value."""

    element: Scalar

    @property
    def type_name(self) -> str:
        return f"list of {self.element.type_name}"


SemanticType = Union[Scalar, Sequence]


@dataclass(frozen=True)
class FieldDescriptor:
    """Everything the binder needs to resolve one leaf field.

    `sections` holds the model class of every intermediate step of `path`
    so missing optional sections can be allocated on demand.
    """

    path: tuple[str, ...]
    key: str
    semantic: SemanticType
    required: bool = False
    default: str | None = None
    sep: str = DEFAULT_SEP
    sections: tuple[type[BaseModel], ...] = field(default=())

    @property
    def name(self) -> str:
        return self.path[-1]


_cache: dict[type[BaseModel], tuple[FieldDescriptor, ...]] = {}
_cache_lock = threading.Lock()


def describe(model_cls: type[BaseModel]) -> tuple[FieldDescriptor, ...]:
    """Return the leaf descriptors of a model class (computed once, cached).

    Raises:
        ShapeError: If the class is not a pydantic model or declares a leaf
            type outside the supported set
    """
    if not is_record_type(model_cls):
        raise ShapeError(f"expected a pydantic model class, got {model_cls!r}")

    cached = _cache.get(model_cls)
    if cached is not None:
        return cached

    with _cache_lock:
        if model_cls not in _cache:
            out: list[FieldDescriptor] = []
            _walk(model_cls, (), (), "", out, (model_cls,))
            _cache[model_cls] = tuple(out)
        return _cache[model_cls]


def _walk(
    model_cls: type[BaseModel],
    path: tuple[str, ...],
    sections: tuple[type[BaseModel], ...],
    prefix: str,
    out: list[FieldDescriptor],
    seen: tuple[type[BaseModel], ...],
) -> None:
    # underscore names are private attributes, absent from model_fields
    for name, info in model_cls.model_fields.items():
        env = env_options(info.metadata)
        if env.ignore:
            continue

        key = build_key(prefix, name, env.name)
        section, _ = record_type(info.annotation)

        if section is not None:
            if section in seen:
                raise ShapeError(f"recursive section {section.__name__} at {key}")
            _walk(
                section,
                path + (name,),
                sections + (section,),
                key + "_",
                out,
                seen + (section,),
            )
            continue

        out.append(
            FieldDescriptor(
                path=path + (name,),
                key=key,
                semantic=semantic_type(info.annotation, info.metadata, key),
                required=env.required,
                default=env.default,
                sep=env.sep,
                sections=sections,
            )
        )


def build_key(prefix: str, field_name: str, override: str | None = None) -> str:
    """Derive the environment key of a field under `prefix`."""
    return (prefix + (override or field_name)).upper()


def env_options(metadata: list[Any]) -> Env:
    """Find the `Env` options among a field's metadata (last one wins)."""
    found = Env()
    for item in metadata:
        if isinstance(item, Env):
            found = item
    return found


def is_record_type(tp: Any) -> bool:
    return isinstance(tp, type) and issubclass(tp, BaseModel)


def unwrap_optional(annotation: Any) -> tuple[Any, bool]:
    """Strip `None` from `X | None`; returns (X, was_optional)."""
    if typing.get_origin(annotation) in (Union, types.UnionType):
        args = [a for a in typing.get_args(annotation) if a is not type(None)]
        if len(args) == 1:
            return args[0], len(args) != len(typing.get_args(annotation))
    return annotation, False


def record_type(annotation: Any) -> tuple[type[BaseModel] | None, bool]:
    """Return (model class, optional) if the annotation is a nested section."""
    inner, optional = unwrap_optional(annotation)
    if is_record_type(inner):
        return inner, optional
    return None, False


def semantic_type(annotation: Any, metadata: list[Any], key: str = "") -> SemanticType:
    """Map a leaf annotation onto the closed set of semantic types.

    Raises:
        ShapeError: If the annotation is not a supported leaf type
    """
    inner, _ = unwrap_optional(annotation)

    if typing.get_origin(inner) is list:
        args = typing.get_args(inner)
        if len(args) != 1:
            raise ShapeError(f"field {key}: list needs one element type")
        element, element_meta = _split_annotated(args[0])
        if typing.get_origin(element) is list:
            raise ShapeError(f"field {key}: nested lists are not supported")
        return Sequence(_scalar(element, element_meta, key))

    # `UInt16 | None` keeps its width inside the union member
    base, extras = _split_annotated(inner)
    return _scalar(base, [*metadata, *extras], key)


def _split_annotated(tp: Any) -> tuple[Any, list[Any]]:
    if typing.get_origin(tp) is Annotated:
        base, *extras = typing.get_args(tp)
        return base, extras
    return tp, []


def _scalar(tp: Any, metadata: list[Any], key: str) -> Scalar:
    # bool before int: bool is an int subclass
    if tp is bool:
        return Scalar(Kind.BOOL)
    if tp is str:
        return Scalar(Kind.STR)
    if tp is float:
        return Scalar(Kind.FLOAT)
    if tp is timedelta:
        return Scalar(Kind.DURATION)
    if tp is datetime:
        return Scalar(Kind.TIMESTAMP)
    if tp is int:
        return _integer(metadata)
    raise ShapeError(f"field {key}: unsupported type {tp!r}")


def _integer(metadata: list[Any]) -> Scalar:
    width = IntWidth()
    for item in metadata:
        if isinstance(item, IntWidth):
            width = item
        elif isinstance(item, annotated_types.Ge) and item.ge >= 0:
            width = IntWidth(width.bits, signed=False)
    return Scalar(Kind.INT if width.signed else Kind.UINT, bits=width.bits)
