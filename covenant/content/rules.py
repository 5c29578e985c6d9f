"""
Ordered field-extraction rules over loosely-typed export records

A field is described by a tuple of ``FieldRule`` objects; the first rule
whose source value is present (and accepted) wins.
"""

from dataclasses import dataclass
from typing import Any, Callable, Iterable, Mapping, Optional

_MISSING = object()


def is_present(value: Any) -> bool:
    return value is not None


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_mapping(value: Any) -> bool:
    return isinstance(value, Mapping)


def is_list(value: Any) -> bool:
    return isinstance(value, list)


def lookup(record: Any, path: str) -> Any:
    """Walk a dotted key path through nested mappings"""
    current = record
    for key in path.split("."):
        if not isinstance(current, Mapping) or key not in current:
            return _MISSING
        current = current[key]
    return current


@dataclass(frozen=True)
class FieldRule:
    """One named source for a field"""

    name: str
    path: str
    accept: Callable[[Any], bool] = is_present
    transform: Optional[Callable[[Any], Any]] = None

    def apply(self, record: Any) -> Any:
        value = lookup(record, self.path)
        if value is _MISSING or value is None or not self.accept(value):
            return None
        return self.transform(value) if self.transform else value


def first_match(record: Any, rules: Iterable[FieldRule], default: Any = None) -> Any:
    for rule in rules:
        value = rule.apply(record)
        if value is not None:
            return value
    return default


def matching_rule(record: Any, rules: Iterable[FieldRule]) -> Optional[str]:
    """Name of the rule that would win, for logging and tests"""
    for rule in rules:
        if rule.apply(record) is not None:
            return rule.name
    return None
