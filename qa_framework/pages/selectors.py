"""
Selector sets for page objects.

Each logical element name maps to an ordered tuple of candidate locators.
The first candidate that matches at least one element wins; resolution is
performed by the interaction primitives, not by selector-union syntax.
"""

from types import MappingProxyType
from typing import Iterator, Mapping, Sequence, Tuple, Union

Target = Union[str, Sequence[str]]


def candidates_of(target: Target) -> Tuple[str, ...]:
    """Normalize a target into its tuple of candidate selectors."""
    if isinstance(target, str):
        return (target,)
    result = tuple(target)
    if not result:
        raise ValueError("A selector target needs at least one candidate")
    return result


def describe(target: Target) -> str:
    """Human-readable form of a target for logs and error messages."""
    return " | ".join(candidates_of(target))


class SelectorSet(Mapping[str, Tuple[str, ...]]):
    """Immutable mapping from element name to fallback selector candidates."""

    def __init__(self, entries: Mapping[str, Target]):
        frozen = {}
        for name, target in entries.items():
            try:
                frozen[name] = candidates_of(target)
            except ValueError:
                raise ValueError(f"Selector '{name}' has no candidates")
        self._entries = MappingProxyType(frozen)

    def __getitem__(self, name: str) -> Tuple[str, ...]:
        try:
            return self._entries[name]
        except KeyError:
            raise KeyError(f"Unknown element '{name}'; known: {sorted(self._entries)}")

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"SelectorSet({dict(self._entries)!r})"

    def within(self, name: str, suffix: str) -> Tuple[str, ...]:
        """Candidates for ``suffix`` nested under each candidate of ``name``."""
        return tuple(f"{candidate} {suffix}" for candidate in self[name])
