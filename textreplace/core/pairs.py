"""Replacement pairs and the pattern table that orders them."""

from __future__ import annotations
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Sequence, Tuple
import logging

from .errors import AllocationError, PairCountError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReplacePair:
    """A literal from-string and the text that replaces it."""

    source: str
    target: str

    def __str__(self) -> str:
        return f"'{self.source}' -> '{self.target}'"


@dataclass(frozen=True)
class PatternTable:
    """
    Immutable set of replace pairs, longest source first.

    Pairs with equal source length keep the order they were given in, so the
    first one given wins when both match at the same position. Empty sources
    are kept in ``pairs`` but never offered as candidates.
    """

    pairs: Tuple[ReplacePair, ...]
    _index: Mapping[str, Tuple[ReplacePair, ...]] = field(
        init=False, repr=False, compare=False
    )

    def __post_init__(self):
        ordered = tuple(sorted(self.pairs, key=lambda p: len(p.source), reverse=True))
        object.__setattr__(self, "pairs", ordered)
        object.__setattr__(self, "_index", self._build_index(ordered))

    @staticmethod
    def _build_index(pairs: Sequence[ReplacePair]) -> Mapping[str, Tuple[ReplacePair, ...]]:
        """Group matchable pairs by first character, preserving table order."""
        buckets: Dict[str, List[ReplacePair]] = {}
        for pair in pairs:
            if not pair.source:
                continue
            buckets.setdefault(pair.source[0], []).append(pair)
        return MappingProxyType({k: tuple(v) for k, v in buckets.items()})

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[str, str]]) -> "PatternTable":
        """Create a table from ``(from, to)`` tuples."""
        try:
            return cls(tuple(ReplacePair(source, target) for source, target in pairs))
        except MemoryError as e:
            raise AllocationError("Memory allocation failed for replace pairs.") from e

    @classmethod
    def from_tokens(cls, tokens: Sequence[str]) -> "PatternTable":
        """
        Create a table from a flat ``from1 to1 from2 to2 ...`` token list.

        Args:
            tokens: Command-line style token sequence

        Returns:
            PatternTable instance

        Raises:
            PairCountError: If fewer than two tokens or an odd number is given
        """
        tokens = list(tokens)
        if len(tokens) < 2 or len(tokens) % 2:
            raise PairCountError(len(tokens))

        table = cls.from_pairs(zip(tokens[0::2], tokens[1::2]))
        logger.debug(f"Built pattern table with {len(table)} pairs")
        return table

    def candidates(self, char: str) -> Tuple[ReplacePair, ...]:
        """Pairs whose source starts with ``char``, longest first."""
        return self._index.get(char, ())

    def __len__(self) -> int:
        return len(self.pairs)

    def __iter__(self) -> Iterator[ReplacePair]:
        return iter(self.pairs)
