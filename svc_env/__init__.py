"""
Svc-Core Environment Loader.

Binds nested pydantic models from `.env`-style override files and the process
environment, driven by per-field `Env(...)` options.
"""

from svc_env.binder import bind, load, load_env, load_file, new_record
from svc_env.exceptions import (
    BindError,
    ConfigError,
    FieldError,
    InvalidValueError,
    MissingRequiredError,
    ShapeError,
    SourceReadError,
)
from svc_env.fields import (
    Env,
    Int8,
    Int16,
    Int32,
    Int64,
    UInt8,
    UInt16,
    UInt32,
    UInt64,
    describe,
)
from svc_env.sources import aggregate, load_env_file, parse_env_file

__all__ = [
    "BindError",
    "ConfigError",
    "Env",
    "FieldError",
    "Int8",
    "Int16",
    "Int32",
    "Int64",
    "InvalidValueError",
    "MissingRequiredError",
    "ShapeError",
    "SourceReadError",
    "UInt8",
    "UInt16",
    "UInt32",
    "UInt64",
    "aggregate",
    "bind",
    "describe",
    "load",
    "load_env",
    "load_env_file",
    "load_file",
    "new_record",
    "parse_env_file",
]
