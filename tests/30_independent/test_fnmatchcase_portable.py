# tests/30_independent/test_fnmatchcase_portable.py
"""Tests for fnmatchcase_portable() path glob matching.

Checklist:
- literal_match: exact string matching without glob chars
- single_star_stays_in_segment: * never crosses '/'
- double_star_crosses_segments: ** matches any depth
- double_star_slash_matches_zero_dirs: "**/x" also matches "x"
- question_mark: ? matches exactly one non-separator character
- character_class: [] and [!] classes
- case_sensitive: matching respects case
- matches_any: any pattern of a list
"""

import pytest

import buildplan.utils.utils_matching as mod_utils_matching


def test_fnmatchcase_portable_literal_match() -> None:
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable("lib/main.py", "lib/main.py")
    assert not mod_utils_matching.fnmatchcase_portable("lib/main.pyc", "lib/main.py")


def test_fnmatchcase_portable_single_star_stays_in_segment() -> None:
    """`lib/*.py` matches direct children only."""
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable("lib/a.py", "lib/*.py")
    assert not mod_utils_matching.fnmatchcase_portable("lib/sub/a.py", "lib/*.py")


def test_fnmatchcase_portable_double_star_crosses_segments() -> None:
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable("lib/a/b/c.py", "lib/**")
    assert mod_utils_matching.fnmatchcase_portable("lib/a/b/c.py", "lib/**.py")
    assert not mod_utils_matching.fnmatchcase_portable("test/a.py", "lib/**")


def test_fnmatchcase_portable_double_star_slash_matches_zero_dirs() -> None:
    """`**/` may match no directory at all."""
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable("lib/x.py", "lib/**/x.py")
    assert mod_utils_matching.fnmatchcase_portable("lib/a/b/x.py", "lib/**/x.py")
    assert mod_utils_matching.fnmatchcase_portable("x.py", "**/x.py")


def test_fnmatchcase_portable_question_mark() -> None:
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable("a1.py", "a?.py")
    assert not mod_utils_matching.fnmatchcase_portable("a12.py", "a?.py")
    assert not mod_utils_matching.fnmatchcase_portable("a/.py", "a?.py")


@pytest.mark.parametrize(
    ("path", "pattern", "expected"),
    [
        ("file1.py", "file[0-9].py", True),
        ("filea.py", "file[0-9].py", False),
        ("filea.py", "file[!0-9].py", True),
        ("file1.py", "file[!0-9].py", False),
        ("[x].py", "[x.py", False),
    ],
)
def test_fnmatchcase_portable_character_class(
    path: str, pattern: str, *, expected: bool
) -> None:
    # --- execute + verify ---
    assert mod_utils_matching.fnmatchcase_portable(path, pattern) is expected


def test_fnmatchcase_portable_case_sensitive() -> None:
    # --- execute + verify ---
    assert not mod_utils_matching.fnmatchcase_portable("Lib/a.py", "lib/*.py")


def test_matches_any() -> None:
    # --- execute + verify ---
    patterns = ["lib/*.py", "test/**"]
    assert mod_utils_matching.matches_any("test/x/y.txt", patterns)
    assert mod_utils_matching.matches_any("lib/a.py", patterns)
    assert not mod_utils_matching.matches_any("doc/a.md", patterns)
    assert not mod_utils_matching.matches_any("lib/a.py", [])
