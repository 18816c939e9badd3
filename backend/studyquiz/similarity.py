"""Face descriptor comparison.

The score is a geometric proxy, ``1 - distance / sqrt(n)`` clamped at zero. It is not a
calibrated probability.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Generic, Iterable, Optional, Sequence, Tuple, TypeVar

T = TypeVar("T")

MATCH_THRESHOLD = 0.6


def similarity(a: Sequence[float], b: Sequence[float]) -> float:
	if len(a) != len(b) or not a:
		return 0.0
	distance = math.dist(a, b)
	return max(0.0, 1 - distance / math.sqrt(len(a)))


def is_match(a: Sequence[float], b: Sequence[float], threshold: float = MATCH_THRESHOLD) -> bool:
	return similarity(a, b) > threshold


@dataclass
class Match(Generic[T]):
	item: T
	score: float


def best_match(
	query: Sequence[float],
	candidates: Iterable[Tuple[T, Optional[Sequence[float]]]],
	threshold: float = MATCH_THRESHOLD,
) -> Optional[Match[T]]:
	"""Return the highest-scoring candidate strictly above ``threshold``.

	Candidates whose vector is missing or has a different length are skipped. On a tie
	the first candidate seen is kept.
	"""
	best: Optional[Match[T]] = None
	best_score = threshold
	for item, vector in candidates:
		if not vector or len(vector) != len(query):
			continue
		score = similarity(query, vector)
		if score > best_score:
			best_score = score
			best = Match(item=item, score=score)
	return best
