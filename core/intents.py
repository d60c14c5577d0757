"""
Voice Intent Resolution

Maps a spoken transcript to one entry of an intent catalog:

1. Phonetic normalization (see core.phonetics)
2. Weighted fuzzy search over keywords, examples and description
3. Confidence gating: ``confidence = round((1 - score) * 100)``; only
   matches at or above the confidence floor are returned.

The catalog is an immutable value handed to the resolver, so tests and
callers can swap catalogs without touching process-wide state.
"""

import json
import math
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Union

from core.fuzzy import FuzzySearcher, SearchHit, SearchKey
from core.models import Intent, MatchResult
from core.phonetics import PHONETIC_CORRECTIONS, PhoneticRule, correct_phonetics

log = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).parent / "data" / "intents.json"


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


class IntentCatalog:
    """Read-only, ordered collection of intents with unique ids."""

    def __init__(self, intents: Iterable[Intent]):
        self._intents = tuple(intents)
        self._by_id: Dict[str, Intent] = {}
        for intent in self._intents:
            if intent.id in self._by_id:
                raise ValueError(f"Duplicate intent id: {intent.id}")
            self._by_id[intent.id] = intent

    @classmethod
    def from_dicts(cls, entries: Iterable[Dict[str, Any]]) -> "IntentCatalog":
        return cls(Intent.from_dict(e) for e in entries)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "IntentCatalog":
        """
        Load a catalog from a JSON file of the form ``{"intents": [...]}``.

        Raises:
            FileNotFoundError: if the file does not exist
            ValueError: if the document is malformed
        """
        path = Path(path)
        with open(path, encoding="utf-8") as f:
            try:
                document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Intent catalog {path} is not valid JSON: {e}") from e

        if not isinstance(document, dict) or not isinstance(document.get("intents"), list):
            raise ValueError(f"Intent catalog {path} must be an object with an 'intents' list")

        try:
            catalog = cls.from_dicts(document["intents"])
        except (KeyError, TypeError) as e:
            raise ValueError(f"Malformed intent in {path}: {e}") from e
        log.info(f"Loaded {len(catalog)} intents from {path}")
        return catalog

    @property
    def intents(self) -> tuple:
        return self._intents

    def get(self, intent_id: str) -> Optional[Intent]:
        return self._by_id.get(intent_id)

    def __len__(self) -> int:
        return len(self._intents)

    def __iter__(self) -> Iterator[Intent]:
        return iter(self._intents)

    def __contains__(self, intent_id: object) -> bool:
        return intent_id in self._by_id


@dataclass(frozen=True)
class ResolverConfig:
    """Matching thresholds and field weights for the intent resolver."""
    threshold: float = 0.35
    min_match_char_length: int = 3
    confidence_floor: int = 65
    suggestion_max_score: float = 0.6

    keyword_weight: float = 0.5
    example_weight: float = 0.35
    description_weight: float = 0.15

    # Keyword fallback scoring
    keyword_hit_points: int = 10
    example_word_points: int = 2
    fallback_confidence_cap: int = 85
    home_intent_id: str = "home"
    home_confidence: int = 30

    def search_keys(self) -> List[SearchKey]:
        return [
            SearchKey("keywords", self.keyword_weight),
            SearchKey("examples", self.example_weight),
            SearchKey("description", self.description_weight),
        ]


def _intent_field(intent: Intent, name: str):
    return getattr(intent, name, None)


class IntentResolver:
    """
    Resolves transcripts against an intent catalog.

    Holds no mutable state after construction; safe to share between callers.
    """

    def __init__(
        self,
        catalog: IntentCatalog,
        config: Optional[ResolverConfig] = None,
        corrections: Sequence[PhoneticRule] = PHONETIC_CORRECTIONS,
    ):
        self.catalog = catalog
        self.config = config or ResolverConfig()
        self.corrections = corrections
        self._searcher: FuzzySearcher[Intent] = FuzzySearcher(
            catalog,
            self.config.search_keys(),
            _intent_field,
            threshold=self.config.threshold,
            min_match_char_length=self.config.min_match_char_length,
        )

    def normalize(self, transcript: str) -> str:
        return correct_phonetics(transcript, self.corrections)

    def _to_match(self, hit: SearchHit[Intent], normalized: str) -> MatchResult:
        confidence = _round_half_up((1 - hit.score) * 100)
        return MatchResult(intent=hit.item, confidence=confidence, normalized_transcript=normalized)

    def resolve_intent(self, transcript: str) -> Optional[MatchResult]:
        """
        Best intent for a transcript, or None when nothing clears the
        confidence floor. Empty transcripts never match.
        """
        normalized = self.normalize(transcript)
        if not normalized:
            return None

        hits = self._searcher.search(normalized, limit=1)
        if not hits:
            log.debug(f"No intent candidates for {normalized!r}")
            return None

        match = self._to_match(hits[0], normalized)
        if match.confidence < self.config.confidence_floor:
            log.debug(f"Best intent {match.intent.id} at {match.confidence}% is below the floor")
            return None

        log.debug(f"Resolved {normalized!r} -> {match.intent.id} ({match.confidence}%)")
        return match

    def rank_candidates(self, transcript: str, limit: int = 3) -> List[MatchResult]:
        """
        Up to ``limit`` plausible intents for disambiguation, best first.

        The top ``limit`` search hits are taken first and then filtered by
        the looser suggestion threshold.
        """
        normalized = self.normalize(transcript)
        if not normalized:
            return []

        hits = self._searcher.search(normalized, limit=limit)
        return [
            self._to_match(hit, normalized)
            for hit in hits
            if hit.score < self.config.suggestion_max_score
        ]

    def match_keywords(self, transcript: str) -> Optional[MatchResult]:
        """
        Plain substring scoring used when fuzzy matching declines.

        Every keyword found in the transcript scores ``keyword_hit_points``;
        every example word found scores ``example_word_points``. Falls back to
        the home intent at low confidence when nothing scores at all.
        """
        cfg = self.config
        text = transcript.lower()
        if not text.strip():
            return None

        best_intent: Optional[Intent] = None
        best_score = 0
        for intent in self.catalog:
            score = 0
            for keyword in intent.keywords:
                if keyword.lower() in text:
                    score += cfg.keyword_hit_points
            for example in intent.examples:
                words = example.lower().split(" ")
                score += sum(cfg.example_word_points for w in words if w in text)

            if score > best_score:
                best_intent, best_score = intent, score

        if best_intent is not None:
            confidence = min(best_score * 3, cfg.fallback_confidence_cap)
            return MatchResult(best_intent, confidence, text)

        home = self.catalog.get(cfg.home_intent_id)
        if home is None:
            return None
        return MatchResult(home, cfg.home_confidence, text)


# ═══════════════════════════════════════════════════════════════════════════
# FACTORY FUNCTIONS
# ═══════════════════════════════════════════════════════════════════════════
_default_catalog: Optional[IntentCatalog] = None


def get_default_catalog() -> IntentCatalog:
    """The intent catalog shipped with the package (loaded once)."""
    global _default_catalog
    if _default_catalog is None:
        _default_catalog = IntentCatalog.from_file(DEFAULT_CATALOG_PATH)
    return _default_catalog


def get_resolver(catalog: Optional[IntentCatalog] = None, config: Optional[ResolverConfig] = None) -> IntentResolver:
    """Get a resolver over the given catalog (default: packaged catalog)."""
    return IntentResolver(catalog if catalog is not None else get_default_catalog(), config)
