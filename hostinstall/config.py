"""Catalog file parsing and environment settings."""

import json
import os
from pathlib import Path

import yaml

from hostinstall.execution import INSTALL_TIMEOUT

TIMEOUT_ENV = "HOSTINSTALL_TIMEOUT"
DEBUG_ENV = "HOSTINSTALL_DEBUG"

YAML_SUFFIXES = (".yaml", ".yml")


class ConfigError(Exception):
    """Raised when a catalog file cannot be read, parsed or validated.

    Syntax errors carry the line number, column and a caret under the
    offending character.
    """
    pass


def preprocess_jsonish(text: str) -> str:
    """Turn JSON-ish text (// comments, trailing commas) into strict JSON.

    Stripped characters become spaces so line/column positions in
    ``json.JSONDecodeError`` still point into the original text.
    """
    out: list[str] = []
    n = len(text)
    i = 0
    in_string = False
    escaped = False

    while i < n:
        char = text[i]

        if in_string:
            out.append(char)
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            i += 1
            continue

        if char == '"':
            in_string = True
            out.append(char)
            i += 1
        elif char == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out.append(" ")
                i += 1
        elif char == "," and _is_trailing_comma(text, i + 1):
            out.append(" ")
            i += 1
        else:
            out.append(char)
            i += 1

    return "".join(out)


def _is_trailing_comma(text: str, start: int) -> bool:
    """True if only whitespace and // comments sit between ``start`` and ] or }."""
    n = len(text)
    j = start
    while j < n:
        if text[j] in " \t\r\n":
            j += 1
        elif text.startswith("//", j):
            while j < n and text[j] != "\n":
                j += 1
        else:
            break
    return j < n and text[j] in "]}"


def _format_syntax_error(original_text: str, error: json.JSONDecodeError) -> str:
    lines = original_text.split("\n")
    parts = [f"Syntax error at line {error.lineno}, col {error.colno}: {error.msg}"]
    if 1 <= error.lineno <= len(lines):
        parts.append(lines[error.lineno - 1])
        parts.append(" " * (error.colno - 1) + "^")
    return "\n".join(parts)


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        raise ConfigError(f"Catalog file not found: {path}")
    except PermissionError:
        raise ConfigError(f"Permission denied reading catalog file: {path}")
    except UnicodeDecodeError:
        raise ConfigError(f"Catalog file is not valid UTF-8: {path}")
    except OSError as e:
        raise ConfigError(f"Error reading catalog file {path}: {e}")


def _load_yaml(text: str, path: Path) -> object:
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        if mark is not None:
            raise ConfigError(
                f"Syntax error in {path} at line {mark.line + 1}, col {mark.column + 1}: "
                f"{getattr(e, 'problem', e)}"
            ) from e
        raise ConfigError(f"Syntax error in {path}: {e}") from e


def load_config(path_or_text: Path | str) -> dict:
    """Parse a catalog file or JSON-ish text into a dict.

    Paths ending in .yaml/.yml are read as YAML; everything else is JSON-ish
    (trailing commas and // line comments tolerated).

    Raises:
        ConfigError: If the file cannot be read, has syntax errors, or does
            not hold an object at the top level.
        TypeError: If path_or_text is neither Path nor str.
    """
    if isinstance(path_or_text, Path):
        original_text = _read_text(path_or_text)
        if path_or_text.suffix.lower() in YAML_SUFFIXES:
            result = _load_yaml(original_text, path_or_text)
            if not isinstance(result, dict):
                raise ConfigError(
                    f"Catalog must be a mapping, got {type(result).__name__}"
                )
            return result
    elif isinstance(path_or_text, str):
        original_text = path_or_text
    else:
        raise TypeError(
            f"path_or_text must be Path or str, got {type(path_or_text).__name__}"
        )

    try:
        result = json.loads(preprocess_jsonish(original_text))
    except json.JSONDecodeError as e:
        raise ConfigError(_format_syntax_error(original_text, e)) from e

    if not isinstance(result, dict):
        raise ConfigError(f"Catalog must be a JSON object, got {type(result).__name__}")

    return result


def get_install_timeout(default: int = INSTALL_TIMEOUT) -> int:
    """Install timeout in seconds, from HOSTINSTALL_TIMEOUT when set."""
    raw = os.environ.get(TIMEOUT_ENV)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ConfigError(f"{TIMEOUT_ENV} must be a whole number of seconds, got '{raw}'")
    if value <= 0:
        raise ConfigError(f"{TIMEOUT_ENV} must be positive, got {value}")
    return value


def env_debug() -> bool:
    return os.environ.get(DEBUG_ENV, "").strip().lower() in ("1", "true", "yes", "on")


__all__ = [
    "ConfigError",
    "DEBUG_ENV",
    "TIMEOUT_ENV",
    "env_debug",
    "get_install_timeout",
    "load_config",
    "preprocess_jsonish",
]
