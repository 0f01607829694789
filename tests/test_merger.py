from retrieval.merger import merge_results
from retrieval.results import ScoredChunk


def _hit(chunk_id, score, source="lexical"):
    return ScoredChunk(id=chunk_id, title=chunk_id, text="", score=score, source=source)


def test_duplicate_ids_keep_max_score():
    merged = merge_results([[_hit("a", 5)], [_hit("a", 12, "approximate")], [_hit("a", 3)]], top_k=6)
    assert len(merged) == 1
    assert merged[0].score == 12
    assert merged[0].source == "approximate"


def test_sorted_descending_and_truncated():
    merged = merge_results(
        [[_hit("entity:japan", 999, "dictionary")], [_hit("x", 2.5), _hit("y", 7.0)], [_hit("z", 50)]],
        top_k=3,
    )
    assert [m.id for m in merged] == ["entity:japan", "z", "y"]


def test_ties_broken_by_id():
    merged = merge_results([[_hit("b", 50), _hit("a", 50), _hit("c", 50)]], top_k=5)
    assert [m.id for m in merged] == ["a", "b", "c"]


def test_empty_inputs():
    assert merge_results([], top_k=5) == []
    assert merge_results([[], []], top_k=5) == []
    assert merge_results([[_hit("a", 1)]], top_k=0) == []
