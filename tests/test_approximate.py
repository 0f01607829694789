import pytest

from ingestion.ingest_pipeline import import_chunks
from ingestion.normalizer import normalize_text
from ingestion.signatures import SignatureParams
from retrieval.approximate import ApproximateMatcher

LIGHTHOUSE_A = (
    "The old lighthouse keeper climbed the spiral stairs every evening to light "
    "the great lamp that guided fishing boats safely past the rocky northern cape."
)
LIGHTHOUSE_B = (
    "The old lighthouse keeper climbed the spiral stairs every night to light "
    "the great lamp that guided fishing ships safely past the rocky northern cape."
)
UNRELATED = "Quarterly revenue figures exceeded analyst expectations by a wide margin."


@pytest.fixture
def populated(store, scheduler):
    import_chunks(
        store,
        [
            {"id": "light_a", "title": "A", "text": normalize_text(LIGHTHOUSE_A)},
            {"id": "light_b", "title": "B", "text": normalize_text(LIGHTHOUSE_B)},
            {"id": "revenue", "title": "R", "text": normalize_text(UNRELATED)},
        ],
        scheduler=scheduler,
    )
    return store


def _matcher(store, **kw):
    opts = dict(scan_ceiling=5000, threshold=0.18, top_n=6, priority_score=50.0)
    opts.update(kw)
    return ApproximateMatcher(store, params=SignatureParams(), **opts)


def test_paraphrase_surfaces_near_duplicate(populated):
    hits = _matcher(populated).match(normalize_text(LIGHTHOUSE_A))
    ids = [h.id for h in hits]
    assert ids[0] == "light_a"
    assert "light_b" in ids
    assert "revenue" not in ids
    assert all(h.score == 50.0 and h.source == "approximate" for h in hits)


def test_similarity_estimates(populated):
    sims = dict(_matcher(populated).similar(normalize_text(LIGHTHOUSE_B)))
    assert sims["light_b"] == 1.0
    assert sims["light_a"] > 0.18


def test_top_n_limit(populated):
    assert len(_matcher(populated, top_n=1).match(normalize_text(LIGHTHOUSE_A))) == 1


def test_query_without_shingles(populated):
    assert _matcher(populated).match("tok") == []


def test_above_ceiling_only_candidates_are_checked(populated):
    matcher = _matcher(populated, scan_ceiling=2)
    q = normalize_text(LIGHTHOUSE_A)
    assert matcher.match(q) == []
    assert [h.id for h in matcher.match(q, candidate_ids=["light_b"])] == ["light_b"]


def test_corpus_at_ceiling_only_checks_candidates(populated):
    q = normalize_text(LIGHTHOUSE_A)
    assert populated.count("chunks") == 3
    assert "light_b" in [h.id for h in _matcher(populated, scan_ceiling=4).match(q)]

    at_ceiling = _matcher(populated, scan_ceiling=3)
    assert at_ceiling.match(q) == []
    assert [h.id for h in at_ceiling.match(q, candidate_ids=["light_b"])] == ["light_b"]


def test_mismatched_signature_length_is_ignored(populated):
    populated.put_signature("light_b", [0] * 64)
    ids = [h.id for h in _matcher(populated).match(normalize_text(LIGHTHOUSE_A))]
    assert "light_b" not in ids


def test_empty_store(store):
    assert _matcher(store).match(normalize_text(LIGHTHOUSE_A)) == []


def test_store_failure_yields_no_results(flaky_store, scheduler):
    store = flaky_store()
    import_chunks(store, [{"id": "a", "title": "a", "text": LIGHTHOUSE_A}], scheduler=scheduler)
    store.fail_reads = True
    assert _matcher(store).match(normalize_text(LIGHTHOUSE_A)) == []
