# src/buildplan/utils/utils_matching.py


import re
from collections.abc import Iterable
from functools import lru_cache


@lru_cache(maxsize=512)
def compile_glob(pattern: str) -> re.Pattern[str]:
    """
    Compile a path glob to a regex.

    `*` and `?` never cross a '/', `**` does, and a `**/` segment also
    matches zero directories. Handles literals and [] classes without
    relying on fnmatch.translate() output. Always case-sensitive.
    """

    def _escape_lit(ch: str) -> str:
        if ch in ".^$+{}[]|()\\":
            return "\\" + ch
        return ch

    i = 0
    n = len(pattern)
    pieces: list[str] = []
    while i < n:
        ch = pattern[i]

        # Character class: copy through closing ']'
        if ch == "[":
            j = i + 1
            if j < n and pattern[j] in "!^":
                j += 1
            # allow leading ']' inside class as a literal
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j < n and pattern[j] == "]":
                body = pattern[i + 1 : j]
                if body.startswith("!"):
                    body = "^" + body[1:]
                pieces.append(f"[{body}]")
                i = j + 1
            else:
                # unmatched '[', treat literally
                pieces.append("\\[")
                i += 1
            continue

        # Recursive glob
        if ch == "*" and i + 1 < n and pattern[i + 1] == "*":
            k = i + 2
            while k < n and pattern[k] == "*":
                k += 1
            if k < n and pattern[k] == "/":
                pieces.append("(?:.*/)?")
                i = k + 1
            else:
                pieces.append(".*")
                i = k
            continue

        # Single-segment glob
        if ch == "*":
            pieces.append("[^/]*")
            i += 1
            continue

        if ch == "?":
            pieces.append("[^/]")
            i += 1
            continue

        pieces.append(_escape_lit(ch))
        i += 1

    inner = "".join(pieces)
    return re.compile(f"(?s:{inner})\\Z")


def fnmatchcase_portable(path: str, pattern: str) -> bool:
    """
    Case-sensitive, separator-aware glob matching.

    Args:
        path: The '/'-separated path to match against the pattern
        pattern: The glob pattern to match

    Returns:
        True if the path matches the pattern, False otherwise.
    """
    return bool(compile_glob(pattern).match(path))


def matches_any(path: str, patterns: Iterable[str]) -> bool:
    return any(fnmatchcase_portable(path, p) for p in patterns)
