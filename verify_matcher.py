import pytest
from matcher import find_task, looks_like_index, similarity
from models import Task

THRESHOLD = 0.85


@pytest.fixture
def tasks():
    return [Task("buy milk"), Task("wash car"), Task("pay rent")]


@pytest.mark.parametrize("k", range(0, 6))
def test_index_resolves_only_inside_list(tasks, k):
    result = find_task(tasks, str(k), THRESHOLD, strict=False)
    assert result.is_index
    if k < len(tasks):
        assert result.index == k
    else:
        assert not result.resolved
        assert result.suggestion is None


@pytest.mark.parametrize("query", ["-1", "-0", "-", ""])
def test_negative_looking_index_never_resolves(tasks, query):
    result = find_task(tasks, query, THRESHOLD, strict=False)
    assert result.is_index
    assert not result.resolved


def test_leading_zeros_are_still_an_index(tasks):
    assert find_task(tasks, "002", THRESHOLD, strict=True).index == 2


@pytest.mark.parametrize("query, expected", [
    ("12", True),
    ("-3", True),
    ("1a", False),
    ("a1", False),
    ("--1", False),
    ("1.5", False),
])
def test_looks_like_index(query, expected):
    assert looks_like_index(query) is expected


@pytest.mark.parametrize("strict", [True, False])
def test_exact_match_ignores_case(tasks, strict):
    result = find_task(tasks, "WASH Car", THRESHOLD, strict)
    assert result.index == 1
    assert not result.is_index
    assert not result.fuzzy


def test_strict_only_suggests(tasks):
    result = find_task(tasks, "buy milc", THRESHOLD, strict=True)
    assert not result.resolved
    assert not result.is_index
    assert result.suggestion.description == "buy milk"
    assert result.suggestion.index == 0
    assert result.suggestion.score > THRESHOLD


def test_non_strict_resolves_best_candidate(tasks):
    result = find_task(tasks, "buy milc", THRESHOLD, strict=False)
    assert result.index == 0
    assert result.fuzzy
    assert result.suggestion.description == "buy milk"


@pytest.mark.parametrize("strict", [True, False])
def test_nothing_close_enough(tasks, strict):
    result = find_task(tasks, "walk the dog", THRESHOLD, strict)
    assert not result.resolved
    assert result.suggestion is None


def test_ties_keep_first_candidate():
    tasks = [Task("call mom"), Task("buy milk"), Task("buy milk")]
    assert find_task(tasks, "buy milc", THRESHOLD, strict=False).index == 1
    assert find_task(tasks, "buy milc", THRESHOLD, strict=True).suggestion.index == 1


def test_strict_needs_score_above_threshold():
    tasks = [Task("buy milk")]
    score = similarity("buy milk", "buy milc")
    assert find_task(tasks, "buy milc", score, strict=True).suggestion is None
    assert find_task(tasks, "buy milc", score, strict=False).index == 0


def test_similarity_is_case_insensitive():
    assert similarity("Buy Milk", "buy milk") == 1.0
    assert 0.0 <= similarity("buy milk", "pay rent") < 0.5


def test_empty_task_list():
    assert not find_task([], "0", THRESHOLD, strict=False).resolved
    assert find_task([], "anything", THRESHOLD, strict=False).suggestion is None
