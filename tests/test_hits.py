"""Tests for hit filtering and best-hit reduction."""

import pytest

from draftgempy.hits import (
    BEST_HIT_COLUMNS,
    filter_hits,
    reduce_best_hits,
    select_best_hits,
)


def test_filter_hits_cutoffs_are_inclusive(make_hits):
    hits = make_hits(
        [
            ("qA", "p1", 100, 45),
            ("qA", "p2", 99.9, 90),
            ("qB", "p3", 500, 44.9),
            ("qC", "p4", 101, 46),
        ]
    )
    filtered = filter_hits(hits, min_score=100, min_positives=45)

    assert list(filtered["reference_protein"]) == ["p1", "p4"]
    assert list(filtered.index) == [0, 1]


def test_reduce_keeps_highest_bitscore_per_query(make_hits):
    hits = make_hits(
        [
            ("qA", "p1", 120, 50),
            ("qA", "p2", 300, 50),
            ("qB", "p3", 200, 60),
            ("qA", "p4", 150, 50),
        ]
    )
    best = reduce_best_hits(hits)

    assert list(best.columns) == BEST_HIT_COLUMNS
    assert list(best["query_gene"]) == ["qA", "qB"]
    assert list(best["reference_protein"]) == ["p2", "p3"]
    assert list(best["bitscore"]) == [300, 200]


def test_reduce_handles_non_consecutive_query_rows(make_hits):
    hits = make_hits(
        [
            ("qB", "p1", 110, 50),
            ("qA", "p2", 400, 50),
            ("qB", "p3", 250, 50),
            ("qA", "p4", 100, 50),
        ]
    )
    best = reduce_best_hits(hits).set_index("query_gene")

    assert best.loc["qA", "reference_protein"] == "p2"
    assert best.loc["qB", "reference_protein"] == "p3"
    assert best.index.is_unique


def test_reduce_strips_metacyc_namespace(make_hits):
    hits = make_hits([("qA", "gnl|META|MONOMER-123", 200, 50)])
    best = reduce_best_hits(hits)

    assert best.loc[0, "reference_protein"] == "MONOMER-123"


def test_tie_first_hit_wins_by_default(make_hits):
    hits = make_hits([("qA", "pZ", 200, 50, 100), ("qA", "pA", 200, 50, 400)])

    assert reduce_best_hits(hits).loc[0, "reference_protein"] == "pZ"


def test_tie_break_by_alignment_length(make_hits):
    hits = make_hits([("qA", "pZ", 200, 50, 100), ("qA", "pA", 200, 50, 400)])

    best = reduce_best_hits(hits, tie_break="align_len")
    assert best.loc[0, "reference_protein"] == "pA"


def test_tie_break_by_protein_id(make_hits):
    hits = make_hits([("qA", "pZ", 200, 50, 400), ("qA", "pA", 200, 50, 100)])

    best = reduce_best_hits(hits, tie_break="protein_id")
    assert best.loc[0, "reference_protein"] == "pA"


def test_unknown_tie_break_raises_on_tie(make_hits):
    hits = make_hits([("qA", "p1", 200, 50), ("qA", "p2", 200, 50)])

    with pytest.raises(ValueError):
        reduce_best_hits(hits, tie_break="coin_flip")


def test_empty_hits_give_empty_best_hits(make_hits):
    best = select_best_hits(make_hits([]))

    assert best.empty
    assert list(best.columns) == BEST_HIT_COLUMNS


def test_query_with_only_weak_hits_is_absent(make_hits):
    hits = make_hits([("qA", "p1", 90, 80), ("qB", "p2", 150, 50)])
    best = select_best_hits(hits, min_score=100, min_positives=45)

    assert list(best["query_gene"]) == ["qB"]


def test_raising_cutoffs_never_adds_query_genes(make_hits):
    hits = make_hits(
        [
            ("qA", "p1", 90, 40),
            ("qA", "p2", 150, 60),
            ("qB", "p3", 120, 46),
            ("qC", "p4", 300, 80),
            ("qD", "p5", 101, 99),
        ]
    )
    previous = None
    for min_score in (0, 100, 120, 200, 400):
        genes = set(select_best_hits(hits, min_score, 45)["query_gene"])
        if previous is not None:
            assert genes <= previous
        previous = genes
