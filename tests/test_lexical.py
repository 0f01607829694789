import math

import pytest

from ingestion.normalizer import normalize_text, tokenize
from retrieval.lexical import InvertedIndex, idf_weight

JAPAN = "The capital of Japan is Tokyo. Tokyo is a large city."
FRANCE = "The capital of France is Paris."
ISLANDS = "Japan has many islands and mountains."


def _add(store, index, chunk_id, text):
    text = normalize_text(text)
    store.put_chunk(chunk_id, {"id": chunk_id, "title": chunk_id, "text": text})
    return index.import_chunk(chunk_id, text)


@pytest.fixture
def index(store):
    return InvertedIndex(store, shortlist_factor=8)


@pytest.fixture
def corpus(store, index):
    _add(store, index, "japan_0", JAPAN)
    _add(store, index, "france_0", FRANCE)
    _add(store, index, "islands_0", ISLANDS)
    return index


class TestIdf:
    def test_rarer_terms_weigh_more(self):
        assert idf_weight(100, 1) > idf_weight(100, 5)

    def test_formula(self):
        assert idf_weight(3, 2) == pytest.approx(math.log(2.5))

    def test_empty_posting_does_not_divide_by_zero(self):
        assert idf_weight(10, 0) == pytest.approx(math.log(11))


class TestImport:
    def test_posting_lists_built(self, store, corpus):
        assert store.get_posting("capital") == {"japan_0", "france_0"}
        assert store.get_posting("japan") == {"japan_0", "islands_0"}

    def test_reimport_is_idempotent(self, store, index):
        assert _add(store, index, "c1", "alpha beta alpha") == 0
        assert _add(store, index, "c1", "alpha beta alpha") == 0
        assert store.get_posting("alpha") == {"c1"}
        assert store.count("chunks") == 1

    def test_reimport_with_new_text_drops_stale_terms(self, store, index):
        index.import_chunk("c1", "alpha beta")
        index.import_chunk("c1", "alpha gamma", previous_text="alpha beta")
        assert store.get_posting("beta") == set()
        assert store.get_posting("gamma") == {"c1"}
        assert store.get_posting("alpha") == {"c1"}

    def test_posting_write_failures_are_counted(self, flaky_store):
        store = flaky_store(fail_postings=True)
        index = InvertedIndex(store)
        assert index.import_chunk("c1", "one two two three") == 3
        assert store.get_posting("one") is None


class TestSearch:
    def test_capital_of_japan(self, corpus):
        results = corpus.search(tokenize("capital of japan"), top_k=3)
        assert results[0].id == "japan_0"
        assert [r.id for r in results] == ["japan_0", "france_0", "islands_0"]
        assert all(r.source == "lexical" for r in results)

    def test_score_adds_length_normalized_overlap(self, store, index):
        _add(store, index, "c1", "alpha beta")
        (hit,) = index.search(["alpha"], top_k=5)
        assert hit.score == pytest.approx(math.log(2) + 1 / 3)

    def test_unknown_terms_give_no_results(self, corpus):
        assert corpus.search(["zebra", "quantum"], top_k=5) == []

    def test_empty_query(self, corpus):
        assert corpus.search([], top_k=5) == []

    def test_top_k_bound(self, corpus):
        assert len(corpus.search(["the", "japan"], top_k=1)) == 1

    def test_zero_top_k(self, corpus):
        assert corpus.search(["japan"], top_k=0) == []

    def test_negative_top_k_is_rejected(self, corpus):
        with pytest.raises(ValueError):
            corpus.search(["japan"], top_k=-1)

    def test_shortlist_bounds_refinement(self, store):
        index = InvertedIndex(store, shortlist_factor=1)
        for i in range(5):
            _add(store, index, f"c{i}", f"common word{i}")
        assert len(index.search(["common"], top_k=2)) == 2

    def test_missing_chunk_skipped(self, store, index):
        index.import_chunk("ghost", "alpha")
        assert index.search(["alpha"], top_k=5) == []

    def test_store_failure_yields_no_results(self, flaky_store):
        store = flaky_store()
        index = InvertedIndex(store)
        _add(store, index, "c1", "alpha beta")
        store.fail_reads = True
        assert index.search(["alpha"], top_k=5) == []
