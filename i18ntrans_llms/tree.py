"""
Conversion between nested locale trees and flat dotted-key mappings.

A locale file such as::

    {"auth": {"login": {"title": "Entrar"}}, "nav": {"home": "Home"}}

flattens to::

    {"auth.login.title": "Entrar", "nav.home": "Home"}

and ``unflatten`` rebuilds the nested form. Key order follows the order in
which keys were first seen, which is also the order they are written back
in, so translated files diff cleanly against the source.

Segment names containing a literal ``.`` cannot be told apart from nesting
and do not round-trip. Empty segment names and empty nested objects have
no flat spelling at all and are rejected.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Union

from i18ntrans_llms.config import JSON_INDENT
from i18ntrans_llms.errors import (
    InputNotFoundError,
    InvalidInputShapeError,
    OutputWriteError,
    StructuralConflictError,
)

logger = logging.getLogger(__name__)

# Flat mapping of dotted key path -> string value
FlatStrings = dict[str, str]

PathLike = Union[str, Path]


def _coerce(key: str, value: Any) -> str:
    """Turn a leaf value into text, rejecting lists."""
    if isinstance(value, str):
        return value
    if isinstance(value, list):
        raise InvalidInputShapeError(
            f"Unsupported list value at '{key}': only strings and objects "
            "are allowed in locale files"
        )
    # Numbers, booleans and null keep their JSON spelling
    text = json.dumps(value, ensure_ascii=False)
    logger.debug("Coerced non-string value at %s to %r", key, text)
    return text


def check_key(key: str) -> None:
    """Reject a dotted key with an empty segment (``""``, ``"a."``, ``"a..b"``).

    Such a key cannot be split back into the path it came from.
    """
    if "" in key.split("."):
        raise InvalidInputShapeError(
            f"Empty key segment in '{key}': key names must be non-empty"
        )


def flatten(tree: dict[str, Any], prefix: str = "") -> FlatStrings:
    """Flatten a nested tree into dotted keys.

    Args:
        tree: Nested mapping whose leaves are strings
        prefix: Key path of ``tree`` inside a larger tree

    Returns:
        Mapping of dotted key path to string value, depth-first order

    Raises:
        InvalidInputShapeError: If a leaf is a list, a key name is empty,
            or a nested object is empty

    Example:
        >>> flatten({"nav": {"home": "Home"}, "title": "App"})
        {'nav.home': 'Home', 'title': 'App'}
    """
    result: FlatStrings = {}
    for key, value in tree.items():
        full_key = f"{prefix}.{key}" if prefix else key
        check_key(full_key)
        if isinstance(value, dict):
            if not value:
                raise InvalidInputShapeError(
                    f"Empty object at '{full_key}': nested objects must "
                    "contain at least one string"
                )
            result.update(flatten(value, full_key))
        else:
            result[full_key] = _coerce(full_key, value)
    return result


def unflatten(flat: FlatStrings) -> dict[str, Any]:
    """Rebuild a nested tree from dotted keys.

    Raises:
        StructuralConflictError: If one key is a value where another key
            needs a group, e.g. ``"a"`` and ``"a.b"``
    """
    result: dict[str, Any] = {}
    for key, value in flat.items():
        parts = key.split(".")
        current = result
        for i, part in enumerate(parts[:-1]):
            node = current.setdefault(part, {})
            if not isinstance(node, dict):
                raise StructuralConflictError(key, ".".join(parts[: i + 1]))
            current = node

        last = parts[-1]
        existing = current.get(last)
        if isinstance(existing, dict) and existing:
            raise StructuralConflictError(key, f"{key}.{next(iter(existing))}")
        if last in current:
            raise StructuralConflictError(key, key)
        current[last] = value
    return result


def load_tree(path: PathLike) -> dict[str, Any]:
    """Read a locale JSON file whose root must be an object.

    Raises:
        InputNotFoundError: If the file is missing or unreadable
        InvalidInputShapeError: If it is not UTF-8 JSON with an object root
    """
    path = Path(path)
    if not path.is_file():
        raise InputNotFoundError(f"Input file not found: {path}")

    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except UnicodeDecodeError as e:
        raise InvalidInputShapeError(f"{path} is not valid UTF-8: {e}") from e
    except json.JSONDecodeError as e:
        raise InvalidInputShapeError(f"{path} is not valid JSON: {e}") from e
    except OSError as e:
        raise InputNotFoundError(f"Cannot read {path}: {e}") from e

    if not isinstance(data, dict):
        raise InvalidInputShapeError(
            f"{path} must contain a JSON object at its root, "
            f"found {type(data).__name__}"
        )
    return data


def dump_tree(tree: dict[str, Any]) -> str:
    """Serialize a tree the way locale files are written."""
    return json.dumps(tree, indent=JSON_INDENT, ensure_ascii=False) + "\n"


def write_tree(path: PathLike, tree: dict[str, Any]) -> Path:
    """Write a tree to ``path`` atomically.

    The content goes to a temporary file next to the target and is moved
    into place, so a failed write never leaves a half-written locale file.

    Raises:
        OutputWriteError: On any filesystem error
    """
    path = Path(path)
    content = dump_tree(tree)
    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{path.name}.", suffix=".tmp", dir=path.parent
        )
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as fh:
            fh.write(content)
        os.replace(tmp_name, path)
    except OSError as e:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise OutputWriteError(f"Failed to write {path}: {e}") from e

    logger.debug("Wrote %s (%d bytes)", path, len(content.encode("utf-8")))
    return path
