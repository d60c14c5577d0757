"""
Weighted fuzzy search over small text catalogs.

Scoring follows the bitap model with location ignored:

- A query is aligned against each field value as an approximate substring;
  its score is ``errors / len(query)`` where ``errors`` is the smallest edit
  distance between the query and any substring of the value. Values scoring
  above ``threshold`` do not match.
- A matching value must also contain a run of ``min_match_char_length``
  consecutive characters that all occur in the query.
- A record's score is the product of ``score ** (key_weight * field_norm)``
  over every matching value, where ``field_norm = 1 / sqrt(token_count)``.
  Lower is better; 0 is a perfect match.

Queries longer than ``MAX_CHUNK`` characters are split into chunks whose
scores are averaged, as bitap only tracks that many pattern bits.
"""

import math
import re
import sys
from dataclasses import dataclass
from typing import Callable, Generic, Iterable, List, Optional, Sequence, Tuple, TypeVar, Union

T = TypeVar("T")

MAX_CHUNK = 32
MIN_VALUE_SCORE = 0.001
EPSILON = sys.float_info.epsilon

_TOKEN = re.compile(r"[^ ]+")

FieldValue = Union[str, Sequence[str]]


@dataclass(frozen=True)
class SearchKey:
    """A searchable field and its relative weight."""
    name: str
    weight: float


@dataclass(frozen=True)
class SearchHit(Generic[T]):
    """One ranked search result."""
    item: T
    score: float  # 0.0 = exact, 1.0 = unrelated
    ref_index: int


def best_substring_distance(pattern: str, text: str) -> int:
    """Minimum edit distance between ``pattern`` and any substring of ``text``."""
    previous = [0] * (len(text) + 1)
    for i, pc in enumerate(pattern, 1):
        current = [i] + [0] * len(text)
        for j, tc in enumerate(text, 1):
            cost = 0 if pc == tc else 1
            current[j] = min(previous[j - 1] + cost, previous[j] + 1, current[j - 1] + 1)
        previous = current
    return min(previous)


def longest_shared_run(pattern: str, text: str) -> int:
    """Longest run of consecutive ``text`` characters that each occur in ``pattern``."""
    alphabet = set(pattern)
    longest = run = 0
    for ch in text:
        run = run + 1 if ch in alphabet else 0
        longest = max(longest, run)
    return longest


def field_norm(value: str) -> float:
    """Shorter fields weigh more: 1/sqrt(tokens), to three decimals."""
    tokens = len(_TOKEN.findall(value)) or 1
    return round(1 / math.sqrt(tokens), 3)


class FuzzySearcher(Generic[T]):
    """
    Ranks records by approximate match of a query against weighted fields.

    Args:
        records: Records to search; never modified
        keys: Fields to search with their weights
        getter: Returns the value(s) of a named field for a record
        threshold: Highest per-value score still counted as a match
        min_match_char_length: Shortest run of query characters a value must contain
    """

    def __init__(
        self,
        records: Iterable[T],
        keys: Sequence[SearchKey],
        getter: Callable[[T, str], Optional[FieldValue]],
        threshold: float = 0.35,
        min_match_char_length: int = 3,
    ):
        self.records: Tuple[T, ...] = tuple(records)
        total_weight = sum(k.weight for k in keys)
        if total_weight <= 0:
            raise ValueError("Search keys need a positive total weight")
        self.keys = tuple(SearchKey(k.name, k.weight / total_weight) for k in keys)
        self.getter = getter
        self.threshold = threshold
        self.min_match_char_length = min_match_char_length
        self._index = [self._index_record(r) for r in self.records]

    def _index_record(self, record: T) -> List[Tuple[float, List[Tuple[str, float]]]]:
        fields = []
        for key in self.keys:
            raw = self.getter(record, key.name)
            if raw is None:
                continue
            values = [raw] if isinstance(raw, str) else list(raw)
            entries = [(v.lower(), field_norm(v)) for v in values if isinstance(v, str) and v.strip()]
            if entries:
                fields.append((key.weight, entries))
        return fields

    def score_value(self, query: str, text: str) -> Tuple[bool, float]:
        """Match one lowercase query against one lowercase field value."""
        if query == text:
            return True, 0.0

        chunks = [query[i:i + MAX_CHUNK] for i in range(0, len(query) - len(query) % MAX_CHUNK, MAX_CHUNK)]
        if len(query) % MAX_CHUNK or not chunks:
            chunks.append(query[-MAX_CHUNK:])

        matched = False
        total = 0.0
        for chunk in chunks:
            is_match, score = self._score_chunk(chunk, text)
            matched = matched or is_match
            total += score
        if not matched:
            return False, 1.0
        return True, total / len(chunks)

    def _score_chunk(self, chunk: str, text: str) -> Tuple[bool, float]:
        errors = best_substring_distance(chunk, text)
        accuracy = errors / len(chunk)
        if accuracy > self.threshold:
            return False, 1.0
        if self.min_match_char_length > 1 and longest_shared_run(chunk, text) < self.min_match_char_length:
            return False, 1.0
        return True, max(MIN_VALUE_SCORE, accuracy)

    def search(self, query: str, limit: Optional[int] = None) -> List[SearchHit[T]]:
        """
        Rank records against ``query``, best first.

        Records with no matching field value are left out; ties keep
        catalog order. An empty query yields no hits.
        """
        query = (query or "").lower()
        if not query:
            return []

        hits: List[SearchHit[T]] = []
        for ref_index, fields in enumerate(self._index):
            total = 1.0
            found = False
            for weight, entries in fields:
                for text, norm in entries:
                    is_match, score = self.score_value(query, text)
                    if not is_match:
                        continue
                    found = True
                    total *= math.pow(EPSILON if score == 0 else score, weight * norm)
            if found:
                hits.append(SearchHit(self.records[ref_index], total, ref_index))

        hits.sort(key=lambda h: (h.score, h.ref_index))
        if limit is not None:
            hits = hits[:max(limit, 0)]
        return hits
