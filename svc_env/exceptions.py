"""Loader exceptions.

Custom exception hierarchy for configuration binding errors.
"""


class ConfigError(Exception):
    """Base exception for configuration loading."""

    pass


class SourceReadError(ConfigError):
    """An override file exists but could not be read."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"load file {path}: {reason}")


class ShapeError(ConfigError, TypeError):
    """Target or field declaration cannot be bound (programming error)."""

    pass


class CoercionError(ValueError):
    """Text could not be converted into a semantic type."""

    def __init__(self, type_name: str, detail: str):
        self.type_name = type_name
        self.detail = detail
        super().__init__(f"invalid {type_name}: {detail}")


class FieldError(ConfigError):
    """Problem with a single configuration key."""

    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(message)


class MissingRequiredError(FieldError):
    """Required key has no value and no default."""

    def __init__(self, key: str):
        super().__init__(key, f"missing required env: {key}")


class InvalidValueError(FieldError):
    """Key has a value that does not parse as the field's type."""

    def __init__(self, key: str, type_name: str, detail: str):
        self.type_name = type_name
        self.detail = detail
        super().__init__(key, f"field {key}: invalid {type_name}: {detail}")


class BindError(ConfigError):
    """Every per-field problem found during one bind, reported together."""

    def __init__(self, errors: list[FieldError]):
        self.errors = list(errors)
        super().__init__("\n".join(str(e) for e in self.errors))

    @property
    def keys(self) -> list[str]:
        """Keys of the failing fields, in declaration order."""
        return [e.key for e in self.errors]
