"""
Ordered, read-only catalogs of rules and fetchers.

Declaration order is significant: the first deciding rule wins, and the first
applicable fetcher for an attribute wins.
"""

from typing import Any, Generic, Iterable, Iterator, Tuple, Type, TypeVar

from ..errors import PolicyDefinitionError
from .definitions import FetcherDefinition, RuleDefinition


D = TypeVar("D", RuleDefinition, FetcherDefinition)


class _Catalog(Generic[D]):
    entry_type: Type = object

    def __init__(self, definitions: Iterable[D] = ()):
        entries = tuple(definitions)
        seen = set()

        for entry in entries:
            if not isinstance(entry, self.entry_type):
                raise PolicyDefinitionError(
                    f"{type(self).__name__} entries must be {self.entry_type.__name__}, "
                    f"got {type(entry).__name__}"
                )
            if entry.id in seen:
                raise PolicyDefinitionError(f"Duplicate id {entry.id!r}", definition_id=entry.id)
            seen.add(entry.id)

        self._entries: Tuple[D, ...] = entries

    def __iter__(self) -> Iterator[D]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> D:
        return self._entries[index]

    def ids(self) -> Tuple[str, ...]:
        return tuple(entry.id for entry in self._entries)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({list(self.ids())!r})"


class RuleCatalog(_Catalog[RuleDefinition]):
    """Rules in declaration order."""

    entry_type = RuleDefinition

    def rules_for(self, action: Any) -> Iterator[RuleDefinition]:
        """Yield, in declaration order, the rules whose actions cover ``action``."""
        return (rule for rule in self._entries if rule.handles(action))


class FetcherCatalog(_Catalog[FetcherDefinition]):
    """Fetchers in declaration order."""

    entry_type = FetcherDefinition

    def attributes(self) -> Tuple[str, ...]:
        """Attributes computed by this catalog, first occurrence order."""
        return tuple(dict.fromkeys(entry.attribute for entry in self._entries))
