import math

import pytest

from studyquiz.similarity import MATCH_THRESHOLD, best_match, is_match, similarity


class TestSimilarity:
    def test_identical_vectors_score_one(self):
        v = [0.1, 0.2, 0.3]
        assert similarity(v, v) == pytest.approx(1.0)
        assert is_match(v, list(v))

    def test_orthogonal_unit_vectors(self):
        score = similarity([1, 0, 0], [0, 1, 0])
        assert score == pytest.approx(1 - math.sqrt(2) / math.sqrt(3))
        assert score == pytest.approx(0.1835, abs=1e-4)
        assert not is_match([1, 0, 0], [0, 1, 0])

    def test_length_mismatch_is_zero(self):
        assert similarity([0.5, 0.5], [0.5, 0.5, 0.5]) == 0.0

    def test_empty_vectors_are_zero(self):
        assert similarity([], []) == 0.0

    def test_clamped_at_zero(self):
        assert similarity([1.0, 1.0], [-1.0, -1.0]) == 0.0

    def test_symmetric(self):
        a, b = [0.3, -0.2, 0.9], [0.1, 0.4, 0.5]
        assert similarity(a, b) == pytest.approx(similarity(b, a))


class TestBestMatch:
    def test_picks_highest_above_threshold(self):
        query = [1.0, 0.0, 0.0, 0.0]
        candidates = [
            ("far", [0.0, 1.0, 0.0, 0.0]),
            ("close", [0.9, 0.0, 0.0, 0.0]),
            ("closest", [1.0, 0.05, 0.0, 0.0]),
        ]
        match = best_match(query, candidates)
        assert match is not None
        assert match.item == "closest"
        assert match.score > MATCH_THRESHOLD

    def test_none_when_nothing_clears_threshold(self):
        assert best_match([1, 0, 0], [("a", [0, 1, 0]), ("b", [0, 0, 1])]) is None

    def test_score_equal_to_threshold_is_rejected(self):
        # distance 0.4 * sqrt(4) = 0.8 -> similarity exactly 0.6
        query = [0.0, 0.0, 0.0, 0.0]
        candidate = [0.8, 0.0, 0.0, 0.0]
        assert similarity(query, candidate) == pytest.approx(0.6)
        assert best_match(query, [("edge", candidate)], threshold=similarity(query, candidate)) is None

    def test_tie_keeps_first_seen(self):
        v = [0.2, 0.4]
        match = best_match(v, [("first", list(v)), ("second", list(v))])
        assert match.item == "first"

    def test_skips_missing_and_mismatched_vectors(self):
        v = [0.2, 0.4]
        match = best_match(v, [("none", None), ("short", [0.2]), ("ok", [0.2, 0.4])])
        assert match.item == "ok"
