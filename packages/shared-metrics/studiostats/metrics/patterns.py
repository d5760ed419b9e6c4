"""Case-insensitive pattern rules used for exclusion and source classification."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from functools import lru_cache
from typing import Any


@lru_cache(maxsize=128)
def compile_rule(rule: str) -> re.Pattern[str]:
    """Compile a ``|``-separated rule into a case-insensitive regex.

    Each alternative is treated as a literal substring, so characters such as
    ``-`` or ``.`` in ``"sign-up"`` carry no regex meaning.

    Args:
        rule: Alternation of literal substrings, e.g. ``"friends|family|staff"``.

    Returns:
        Compiled pattern that matches if any alternative occurs in the text.
    """
    alternatives = [re.escape(part) for part in rule.split("|") if part]
    if not alternatives:
        # Never matches
        return re.compile(r"(?!)")
    return re.compile("|".join(alternatives), re.IGNORECASE)


def matches(text: str | None, rule: str) -> bool:
    """Return True if ``text`` contains any alternative of ``rule``, ignoring case.

    Examples:
        >>> matches("Staff Complimentary", "friends|family|staff")
        True
        >>> matches("", "friends|family|staff")
        False
    """
    if not text or not isinstance(text, str):
        return False
    return compile_rule(rule).search(text) is not None


def first_present(row: Mapping[str, Any], names: Sequence[str], default: Any = "") -> Any:
    """Return the first non-empty value among several header-name variants.

    Args:
        row: Raw row mapping from column name to value.
        names: Candidate column names, in priority order.
        default: Value returned when no variant is populated.

    Returns:
        The first value that is not None and not a blank string.
    """
    for name in names:
        value = row.get(name)
        if value is None:
            continue
        if isinstance(value, str):
            if value.strip():
                return value
            continue
        if isinstance(value, float) and value != value:
            # NaN from pandas
            continue
        return value
    return default
