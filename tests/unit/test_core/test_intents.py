import json
import pytest
from core.intents import IntentCatalog, IntentResolver, ResolverConfig, get_default_catalog, get_resolver
from core.models import Intent

FIXTURE_INTENTS = [
    {"id": "home", "route": "/", "keywords": ["home"], "examples": ["navigate home"], "description": "Main screen"},
    {"id": "safety", "route": "/safety", "keywords": ["safety"], "examples": ["navigate safety"], "description": "Safety tools"},
    {"id": "pay_bills", "route": "/payments", "keywords": ["water bill", "pay bill"], "examples": ["pay water bill"], "description": "Pay utility bills"},
    {"id": "toggle_theme", "action": "theme_toggle", "keywords": ["dark mode"], "examples": ["switch theme"], "description": "Switch theme"},
]


@pytest.fixture
def catalog():
    return IntentCatalog.from_dicts(FIXTURE_INTENTS)


@pytest.fixture
def resolver(catalog):
    return IntentResolver(catalog)


class TestIntentCatalog:
    """Tests for catalog construction and loading."""

    def test_lookup(self, catalog):
        assert len(catalog) == 4
        assert "safety" in catalog
        assert catalog.get("toggle_theme").action == "theme_toggle"
        assert catalog.get("missing") is None

    def test_duplicate_ids_rejected(self):
        with pytest.raises(ValueError):
            IntentCatalog.from_dicts([{"id": "a"}, {"id": "a"}])

    def test_route_and_action_rejected(self):
        with pytest.raises(ValueError):
            Intent(id="both", route="/x", action="y")

    def test_from_file(self, tmp_path):
        path = tmp_path / "intents.json"
        path.write_text(json.dumps({"intents": FIXTURE_INTENTS}))
        catalog = IntentCatalog.from_file(path)
        assert [i.id for i in catalog] == ["home", "safety", "pay_bills", "toggle_theme"]

    @pytest.mark.parametrize("content", ["not json", "[]", '{"intents": {}}', '{"intents": [{"keywords": []}]}'])
    def test_from_file_malformed(self, tmp_path, content):
        path = tmp_path / "bad.json"
        path.write_text(content)
        with pytest.raises(ValueError):
            IntentCatalog.from_file(path)

    def test_from_file_missing(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            IntentCatalog.from_file(tmp_path / "nope.json")

    def test_default_catalog(self):
        catalog = get_default_catalog()
        assert "home" in catalog
        assert "safety" in catalog
        for intent in catalog:
            assert not (intent.route and intent.action)


class TestResolveIntent:
    """Tests for fuzzy intent resolution."""

    def test_verbatim_keyword(self, resolver):
        match = resolver.resolve_intent("dark mode")
        assert match is not None
        assert match.intent.id == "toggle_theme"
        assert match.confidence >= 65

    def test_take_me_to_safety(self, resolver):
        match = resolver.resolve_intent("Take me to safety")
        assert match.intent.id == "safety"
        assert match.intent.route == "/safety"
        assert match.normalized_transcript == "navigate safety"
        assert match.confidence >= 65

    def test_misheard_bill(self, resolver):
        match = resolver.resolve_intent("pay my water build")
        assert match.intent.id == "pay_bills"
        assert match.normalized_transcript == "pay water bill"

    def test_nonsense_is_no_match(self, resolver):
        assert resolver.resolve_intent("asdkjhasdkjh nonsense") is None

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_transcript(self, resolver, text):
        assert resolver.resolve_intent(text) is None

    def test_confidence_floor_is_configurable(self, catalog):
        # A one-letter typo clears 65% but not a 99% floor
        strict = IntentResolver(catalog, ResolverConfig(confidence_floor=99))
        assert strict.resolve_intent("safetx") is None
        assert IntentResolver(catalog).resolve_intent("safetx").intent.id == "safety"

    def test_catalog_not_mutated(self, catalog, resolver):
        before = [i.to_dict() for i in catalog]
        resolver.resolve_intent("navigate home")
        resolver.rank_candidates("bill")
        assert [i.to_dict() for i in catalog] == before

    def test_default_catalog_flows(self):
        resolver = get_resolver()
        assert resolver.resolve_intent("take me to safety").intent.id == "safety"
        assert resolver.resolve_intent("pothole").intent.id == "report_issue"
        assert resolver.resolve_intent("asdkjhasdkjh nonsense") is None
        assert resolver.resolve_intent("") is None


class TestRankCandidates:
    """Tests for disambiguation suggestions."""

    def test_best_first(self, resolver):
        candidates = resolver.rank_candidates("theme")
        assert candidates
        assert candidates[0].intent.id == "toggle_theme"
        assert all(c.confidence > 40 for c in candidates)
        assert all(c.normalized_transcript == "theme" for c in candidates)

    def test_limit(self, resolver):
        assert len(resolver.rank_candidates("navigate", limit=1)) <= 1
        assert len(resolver.rank_candidates("navigate")) <= 3

    def test_empty(self, resolver):
        assert resolver.rank_candidates("") == []

    def test_nonsense(self, resolver):
        assert resolver.rank_candidates("qqqqqqqq zzzzzz") == []


class TestKeywordFallback:
    """Tests for the substring keyword matcher."""

    def test_keyword_and_example_words(self, resolver):
        match = resolver.match_keywords("I want to pay water bill now")
        # keyword "water bill" (+10) and example words pay/water/bill (+6)
        assert match.intent.id == "pay_bills"
        assert match.confidence == 48

    def test_confidence_cap(self):
        catalog = IntentCatalog.from_dicts([{"id": "x", "route": "/x", "keywords": ["alpha", "beta", "gamma"]}])
        match = IntentResolver(catalog).match_keywords("alpha beta gamma")
        assert match.confidence == 85

    def test_home_default(self, resolver):
        match = resolver.match_keywords("xyz")
        assert match.intent.id == "home"
        assert match.confidence == 30

    def test_no_home(self):
        resolver = IntentResolver(IntentCatalog.from_dicts(FIXTURE_INTENTS[1:]))
        assert resolver.match_keywords("xyz") is None

    def test_empty(self, resolver):
        assert resolver.match_keywords("  ") is None
