# tests/test_similarity.py

from __future__ import annotations

import pytest

from timepilot.estimation.similarity import rank_candidates, score, stem, tokenize

from .fakes import past


@pytest.mark.parametrize(
    ("word", "expected"),
    [
        ("groceries", "grocery"),
        ("running", "runn"),
        ("cooked", "cook"),
        ("emails", "email"),
        ("gym", "gym"),
        # first matching rule only: "ies" wins over "s"
        ("studies", "study"),
    ],
)
def test_stem_first_rule_wins(word: str, expected: str) -> None:
    assert stem(word) == expected


def test_tokenize_strips_punctuation_and_case() -> None:
    assert tokenize("Drive to office (commute)!") == ["drive", "to", "office", "commute"]
    assert tokenize("  ") == []


def test_exact_token_overlap_uses_longer_title() -> None:
    assert score("Drive to office (commute)", "drive to office") == pytest.approx(0.75)
    assert score("Grocery shopping", "grocery shop") == pytest.approx(0.5)


def test_case_insensitive_full_match() -> None:
    assert score("GYM", "gym") == 1.0


def test_plural_is_matched_after_stemming() -> None:
    assert score("Buy groceries", "buy grocery") == 1.0


def test_loose_match_is_down_weighted() -> None:
    # "run" vs "runn" share no token, but one contains the other.
    assert score("run", "running") == pytest.approx(0.75)
    assert score("run", "running") < score("run", "run")


def test_empty_or_symbol_only_titles_score_zero() -> None:
    assert score("", "gym") == 0.0
    assert score("!!!", "gym") == 0.0
    assert score("gym", "") == 0.0


def test_unrelated_titles_score_zero() -> None:
    assert score("gym session", "write report") == 0.0


@pytest.mark.parametrize(
    ("a", "b"),
    [
        ("Grocery shopping", "Weekly grocery shop"),
        ("Gym session", "1 hour gym"),
        ("Write report", "Report writing for Q3"),
        ("Drive to office", "Commute to the office"),
        ("Cook dinner", "Dinner with friends"),
        ("Read emails", "Answer email"),
    ],
)
def test_score_is_symmetric_for_natural_titles(a: str, b: str) -> None:
    assert score(a, b) == score(b, a)


def test_score_stays_in_unit_interval() -> None:
    titles = ["a", "a b", "ab", "abc def", "def", "x y z", "running late", "run"]
    for a in titles:
        for b in titles:
            assert 0.0 <= score(a, b) <= 1.0


def test_rank_candidates_keeps_positive_sorted_and_limited() -> None:
    history = [
        past("Write report", 60),
        past("Weekly grocery shopping", 90),
        past("Grocery shopping", 80),
        past("Gym", 45),
        past("Grocery run", 70),
    ]
    ranked = rank_candidates("Grocery shopping", history, limit=2)

    assert [c.task.title for c in ranked] == ["Grocery shopping", "Weekly grocery shopping"]
    assert ranked[0].score == 1.0
    assert all(c.score > 0 for c in ranked)


def test_rank_candidates_ties_keep_history_order() -> None:
    history = [past("gym a", 40), past("gym b", 50), past("gym c", 60)]
    ranked = rank_candidates("gym", history)
    assert [c.task.title for c in ranked] == ["gym a", "gym b", "gym c"]


def test_rank_candidates_no_matches() -> None:
    assert rank_candidates("Gym", [past("Write report", 60)]) == []
