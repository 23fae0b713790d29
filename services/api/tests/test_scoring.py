import pytest

from swapfinder.services.scoring import (
    EstimatedScorer,
    ScoreFactors,
    estimate_score_with_reasons,
    get_score_rating,
)


def test_estimate_reason_codes() -> None:
    score, reasons = estimate_score_with_reasons(
        ScoreFactors(nutriscore_grade="B", nova_group=3, is_organic=True)
    )
    assert score == 4 * 15 + 5 + 10
    assert reasons == ["NUTRISCORE_B", "NOVA_3", "ORGANIC"]


def test_estimate_tops_out_at_100() -> None:
    score, reasons = estimate_score_with_reasons(
        ScoreFactors(nutriscore_grade="a", nova_group=1, is_organic=True)
    )
    assert score == 100
    assert "CLAMPED" not in reasons


def test_estimate_is_clamped_for_out_of_range_nova() -> None:
    score, reasons = estimate_score_with_reasons(ScoreFactors(nutriscore_grade="e", nova_group=9))
    assert score == 0
    assert "CLAMPED" in reasons


def test_estimate_without_grade_uses_default_rank() -> None:
    score, reasons = estimate_score_with_reasons(ScoreFactors())
    assert score == 30
    assert reasons == ["NUTRISCORE_UNKNOWN"]


def test_estimated_scorer_requires_grade() -> None:
    scorer = EstimatedScorer()
    assert scorer.score(ScoreFactors(nova_group=1)) is None
    assert scorer.score(ScoreFactors(nutriscore_grade="e", nova_group=4)) == 15


@pytest.mark.parametrize(
    ("score", "rating"),
    [
        (100, "excellent"),
        (86, "excellent"),
        (85, "good"),
        (71, "good"),
        (70, "okay"),
        (51, "okay"),
        (50, "poor"),
        (31, "poor"),
        (30, "avoid"),
        (0, "avoid"),
        (None, "unknown"),
    ],
)
def test_score_rating_bands(score: int | None, rating: str) -> None:
    assert get_score_rating(score).rating == rating
