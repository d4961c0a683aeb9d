"""Test names and per-format statements for test cases."""

from __future__ import annotations

from pathlib import Path, PurePath
from typing import Optional, Union

FORMAT_PLACEHOLDER = "{FORMAT}"

FORMAT_REPLACE_ERROR = (
    "To use {FORMAT} in your statements please set the 'format' test case element"
)


def build_test_name(
    original_file_name: Union[str, Path],
    test_name: str,
    explicit_format: Optional[str] = None,
) -> str:
    """Build the display name of a test.

    Example:
        >>> build_test_name("dir/MyTest.json", "case1", "JSON")
        'MyTest - case1 - JSON'
    """
    suffix = f" - {explicit_format}" if explicit_format is not None else ""
    return _file_prefix(original_file_name) + test_name + suffix


def extract_simple_test_name(original_file_name: Union[str, Path], test_name: str) -> str:
    """Strip the file prefix added by :func:`build_test_name`.

    Raises:
        ValueError: If ``test_name`` does not start with the file prefix
    """
    prefix = _file_prefix(original_file_name)
    if not test_name.startswith(prefix):
        raise ValueError(f"Not prefixed test name: {test_name}")
    return test_name[len(prefix):]


def build_statements(statements: list[str], explicit_format: Optional[str] = None) -> list[str]:
    """Substitute ``{FORMAT}`` in every statement.

    Without a format the placeholder is replaced by an explanatory message, so
    the statement fails visibly rather than silently using a wrong format.
    """
    replacement = explicit_format if explicit_format is not None else FORMAT_REPLACE_ERROR
    return [statement.replace(FORMAT_PLACEHOLDER, replacement) for statement in statements]


def _file_prefix(path: Union[str, Path]) -> str:
    name = PurePath(str(path)).name
    stem = name.rsplit(".", 1)[0] if "." in name else name
    return f"{stem} - "
