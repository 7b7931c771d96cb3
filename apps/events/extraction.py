"""Ordered extraction rules for probing loosely shaped payloads.

A rule is a pure function ``payload -> value | None``. Fields are resolved by
applying a tuple of rules in priority order; the first non-empty value wins.
Keeping the rules as data lets drivers declare where each field may live
without nesting ``.get()`` chains in the parsing code.
"""

from __future__ import annotations

from typing import Any, Callable, Iterable

Rule = Callable[[Any], Any]


def is_present(value: Any) -> bool:
    """Return True when a value counts as a match (not None or empty)."""
    if value is None:
        return False
    if isinstance(value, (str, list, tuple, dict)):
        return len(value) > 0
    return True


def path(*keys: str | int) -> Rule:
    """Build a rule that walks nested mappings/lists.

    String keys index mappings, integer keys index lists (negative allowed).
    Any missing step or type mismatch yields None.
    """

    def rule(payload: Any) -> Any:
        current = payload
        for key in keys:
            if isinstance(key, int):
                if not isinstance(current, list) or not -len(current) <= key < len(current):
                    return None
                current = current[key]
            else:
                if not isinstance(current, dict):
                    return None
                current = current.get(key)
            if current is None:
                return None
        return current

    rule.__name__ = "path_" + "_".join(str(k) for k in keys)
    return rule


def typed(rule: Rule, *types: type) -> Rule:
    """Only accept the rule's value when it is an instance of ``types``."""

    def wrapped(payload: Any) -> Any:
        value = rule(payload)
        return value if isinstance(value, types) else None

    wrapped.__name__ = f"typed_{getattr(rule, '__name__', 'rule')}"
    return wrapped


def first_match(payload: Any, rules: Iterable[Rule], default: Any = None) -> Any:
    """Apply ``rules`` in order and return the first present value."""
    for rule in rules:
        value = rule(payload)
        if is_present(value):
            return value
    return default
