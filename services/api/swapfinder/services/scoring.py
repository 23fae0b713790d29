"""Score estimation and rating bands.

The authoritative product score (0-100) is computed by the scoring pipeline
outside this service. Two things live here:
- A quick estimate for externally discovered products that have not been
  scored yet (Nutri-Score grade + NOVA group + organic label).
- Rating bands used to annotate scores for display.
"""

from dataclasses import dataclass
from typing import Protocol

# Nutri-Score grade -> rank (higher is better)
NUTRISCORE_RANK = {"a": 5, "b": 4, "c": 3, "d": 2, "e": 1}

_GRADE_WEIGHT = 15
_NOVA_WEIGHT = 5
_ORGANIC_BONUS = 10
_DEFAULT_GRADE_RANK = 2


@dataclass
class ScoreFactors:
    """Inputs available for an unscored product."""

    nutriscore_grade: str | None = None
    nova_group: int | None = None
    is_organic: bool = False


class Scorer(Protocol):
    """Scoring collaborator: returns a 0-100 score or None when unscorable."""

    def score(self, factors: ScoreFactors) -> int | None: ...


def estimate_score_with_reasons(factors: ScoreFactors) -> tuple[int, list[str]]:
    """Estimate a score and return compact reason codes."""
    grade = (factors.nutriscore_grade or "").lower()
    grade_rank = NUTRISCORE_RANK.get(grade, _DEFAULT_GRADE_RANK)
    score = grade_rank * _GRADE_WEIGHT
    reasons: list[str] = [f"NUTRISCORE_{grade.upper() or 'UNKNOWN'}"]

    if factors.nova_group:
        score += (4 - factors.nova_group) * _NOVA_WEIGHT
        reasons.append(f"NOVA_{factors.nova_group}")
    if factors.is_organic:
        score += _ORGANIC_BONUS
        reasons.append("ORGANIC")

    clamped = max(0, min(100, score))
    if clamped != score:
        reasons.append("CLAMPED")
    return clamped, reasons


class EstimatedScorer:
    """Default scorer for discovered products."""

    def score(self, factors: ScoreFactors) -> int | None:
        if not factors.nutriscore_grade:
            return None
        score, _ = estimate_score_with_reasons(factors)
        return score


@dataclass(frozen=True)
class ScoreRating:
    rating: str
    emoji: str
    color: str


_RATING_BANDS: tuple[tuple[int, ScoreRating], ...] = (
    (86, ScoreRating("excellent", "🌟", "#22c55e")),
    (71, ScoreRating("good", "🟢", "#84cc16")),
    (51, ScoreRating("okay", "🟡", "#eab308")),
    (31, ScoreRating("poor", "🟠", "#f97316")),
)
_AVOID = ScoreRating("avoid", "🔴", "#ef4444")
_UNKNOWN = ScoreRating("unknown", "⚪", "#9ca3af")


def get_score_rating(score: int | None) -> ScoreRating:
    """Map a score to its display band."""
    if score is None:
        return _UNKNOWN
    for floor, rating in _RATING_BANDS:
        if score >= floor:
            return rating
    return _AVOID
