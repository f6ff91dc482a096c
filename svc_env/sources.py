"""Source Aggregator.

Merges override files and a snapshot of the process environment into one flat
key -> text mapping.

Precedence (lowest to highest):
1. Override files, in the order given (a later file wins over an earlier one)
2. Process environment

Keys are upper-cased on merge so lookups are case-insensitive.
"""

import os
from collections.abc import Iterable, Mapping

from svc_env.exceptions import SourceReadError
from svc_obs.logging import get_logger

logger = get_logger(__name__)

QUOTES = ('"', "'")


def parse_env_file(text: str) -> dict[str, str]:
    """Parse `KEY=VALUE` lines.

    Blank lines, `#` comments and lines without `=` are skipped. One layer of
    matching single or double quotes around a value is removed.
    """
    values: dict[str, str] = {}

    for raw_line in text.split("\n"):
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        if not sep:
            continue

        key = key.strip()
        value = value.strip()
        if len(value) > 1 and value[0] in QUOTES and value[-1] == value[0]:
            value = value[1:-1]

        values[key] = value

    return values


def load_env_file(path: str | os.PathLike) -> dict[str, str] | None:
    """Read and parse one override file.

    Returns:
        Parsed pairs, or None if the file does not exist

    Raises:
        SourceReadError: If the file exists but cannot be read as UTF-8 text
    """
    try:
        with open(path, encoding="utf-8") as f:
            text = f.read()
    except FileNotFoundError:
        logger.debug("env_file_missing", path=str(path))
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(str(path), str(e)) from e

    return parse_env_file(text)


def aggregate(
    file_paths: Iterable[str | os.PathLike] = (),
    include_process_env: bool = True,
    environ: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Build the source mapping for one bind.

    Args:
        file_paths: Override files, lowest precedence first
        include_process_env: Merge the process environment last
        environ: Environment snapshot to merge (defaults to os.environ)

    Returns:
        Flat mapping of upper-cased key to text value
    """
    merged: dict[str, str] = {}

    for path in file_paths:
        values = load_env_file(path)
        if values is None:
            continue
        _merge(merged, values)
        logger.debug("env_file_loaded", path=str(path), keys=len(values))

    if include_process_env:
        snapshot = dict(os.environ if environ is None else environ)
        _merge(merged, snapshot)

    return merged


def _merge(dest: dict[str, str], values: Mapping[str, str]) -> None:
    for key, value in values.items():
        dest[key.upper()] = value
