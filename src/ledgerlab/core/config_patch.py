# src/ledgerlab/core/config_patch.py
"""
Key-path patching of TOML configuration files.

Documents are round-tripped through tomlkit, so comments, ordering and
the formatting of untouched lines survive a patch. Writes go to a
temporary file beside the target which then replaces it with
os.replace(), so the target is either fully old or fully new.
"""

import contextlib
import os
import stat
import tempfile
from collections.abc import Mapping, MutableMapping
from pathlib import Path
from typing import Any, Literal

import tomlkit
from tomlkit import TOMLDocument
from tomlkit.exceptions import TOMLKitError

from ledgerlab.contracts import ConfigWriteError, Scalar

ScalarType = Literal["str", "int", "float", "bool"]

_TRUE = frozenset({"true", "yes", "on", "1"})
_FALSE = frozenset({"false", "no", "off", "0"})


def _split_key_path(key_path: str) -> list[str]:
    parts = key_path.split(".")
    if not key_path or any(not part for part in parts):
        raise ValueError(f"Invalid key path: {key_path!r}")
    return parts


def _load(path: Path) -> TOMLDocument:
    if not path.is_file():
        raise ConfigWriteError(path, "file does not exist")
    try:
        text = path.read_text(encoding="utf-8")
    except UnicodeDecodeError as e:
        raise ConfigWriteError(path, f"malformed TOML: {e}") from e
    except OSError as e:
        raise ConfigWriteError(path, str(e)) from e
    try:
        return tomlkit.parse(text)
    except TOMLKitError as e:
        raise ConfigWriteError(path, f"malformed TOML: {e}") from e


def set_value(path: Path, key_path: str, value: Scalar) -> None:
    """Set the value at a dotted key path, creating tables as needed.

    All other keys, comments and formatting are preserved. Setting a value
    that is already present rewrites identical content.

    Raises:
        ConfigWriteError: If the file is missing, malformed, not writable,
            or a key path segment names a non-table value
    """
    path = Path(path)
    parts = _split_key_path(key_path)
    document = _load(path)

    table: MutableMapping[str, Any] = document
    for depth, part in enumerate(parts[:-1]):
        if part not in table:
            table[part] = tomlkit.table()
        child = table[part]
        if not isinstance(child, MutableMapping):
            prefix = ".".join(parts[: depth + 1])
            raise ConfigWriteError(path, f"'{prefix}' is not a table")
        table = child
    table[parts[-1]] = value

    _atomic_write(path, tomlkit.dumps(document))


def get_value(path: Path, key_path: str) -> Any:
    """Read the value at a dotted key path as a plain Python value.

    Raises:
        KeyError: If any segment of the key path is absent
        ConfigWriteError: If the file is missing or malformed
    """
    node: Any = _load(Path(path))
    for part in _split_key_path(key_path):
        if not isinstance(node, Mapping) or part not in node:
            raise KeyError(key_path)
        node = node[part]
    if hasattr(node, "unwrap"):
        return node.unwrap()
    return node


def _atomic_write(path: Path, content: str) -> None:
    try:
        mode = stat.S_IMODE(path.stat().st_mode)
        fd, tmp_name = tempfile.mkstemp(
            dir=path.parent, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise ConfigWriteError(path, str(e)) from e

    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.chmod(tmp_path, mode)
        os.replace(tmp_path, path)
    except OSError as e:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise ConfigWriteError(path, str(e)) from e
    except BaseException:
        with contextlib.suppress(FileNotFoundError):
            tmp_path.unlink()
        raise


def parse_scalar(text: str, kind: ScalarType = "str") -> Scalar:
    """Convert command-line text into a typed scalar.

    Raises:
        ValueError: If text cannot be converted to kind
    """
    if kind == "str":
        return text
    if kind == "int":
        return int(text)
    if kind == "float":
        return float(text)
    lowered = text.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"Not a boolean: {text!r}")
