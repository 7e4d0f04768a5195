"""Tests for response aggregation and answer validation."""

import pytest

from coalition.schemas.question import Question
from coalition.services.aggregation import ResponseRecord, aggregate, validate_answers


def q(**fields) -> Question:
    return Question.model_validate(fields)


COLOR = q(id="color", type="multipleChoice", text="Pick one", options=["A", "B", "C"])
TOPICS = q(id="topics", type="checkbox", text="Topics", options=["housing", "health", "transport"])
SCORE = q(id="score", type="rating", text="How useful?", minValue=1, maxValue=5)
NOTES = q(id="notes", type="text", text="Anything else?")


def test_multiple_choice_counts_and_organizations():
    responses = [
        ResponseRecord("org1", {"color": "A"}),
        ResponseRecord("org2", {"color": "B"}),
        ResponseRecord("org3", {"color": "A"}),
    ]
    stats = aggregate([COLOR], responses)

    assert stats.total_responses == 3
    buckets = stats.questions[0].stats
    assert buckets["A"].count == 2
    assert buckets["A"].organizations == ["org1", "org3"]
    assert buckets["B"].count == 1
    assert buckets["B"].organizations == ["org2"]
    assert buckets["C"].count == 0


def test_choice_buckets_ordered_by_count_then_declared_order():
    responses = [
        ResponseRecord("org1", {"color": "C"}),
        ResponseRecord("org2", {"color": "B"}),
        ResponseRecord("org3", {"color": "C"}),
    ]
    stats = aggregate([COLOR], responses)
    assert list(stats.questions[0].stats) == ["C", "B", "A"]


def test_counts_do_not_depend_on_input_order():
    responses = [
        ResponseRecord("org1", {"color": "A"}),
        ResponseRecord("org2", {"color": "B"}),
        ResponseRecord("org3", {"color": "A"}),
    ]
    forward = aggregate([COLOR], responses).questions[0].stats
    backward = aggregate([COLOR], list(reversed(responses))).questions[0].stats
    assert {k: b.count for k, b in forward.items()} == {k: b.count for k, b in backward.items()}


def test_unknown_option_gets_its_own_bucket():
    stats = aggregate([COLOR], [ResponseRecord("org1", {"color": "Z"})])
    buckets = stats.questions[0].stats
    assert buckets["Z"].count == 1
    assert list(buckets)[0] == "Z"


def test_checkbox_counts_each_selected_value():
    responses = [
        ResponseRecord("org1", {"topics": ["housing", "health"]}),
        ResponseRecord("org2", {"topics": ["health"]}),
    ]
    result = aggregate([TOPICS], responses).questions[0]
    assert result.stats["health"].count == 2
    assert result.stats["housing"].count == 1
    assert result.stats["transport"].count == 0
    assert result.answered == 2


def test_repeated_checkbox_value_counts_once():
    result = aggregate([TOPICS], [ResponseRecord("org1", {"topics": ["health", "health"]})]).questions[0]
    assert result.stats["health"].count == 1
    assert result.stats["health"].organizations == ["org1"]
    assert result.answered == 1


def test_rating_buckets_seeded_and_averaged():
    responses = [
        ResponseRecord("org1", {"score": 4}),
        ResponseRecord("org2", {"score": "5"}),
        ResponseRecord("org3", {"score": 3}),
    ]
    result = aggregate([SCORE], responses).questions[0]
    assert list(result.stats) == ["1", "2", "3", "4", "5"]
    assert result.stats["4"].organizations == ["org1"]
    assert result.stats["1"].count == 0
    assert result.average_rating == pytest.approx(4.0)


def test_text_answers_keep_input_order():
    responses = [
        ResponseRecord("org1", {"notes": "More funding"}),
        ResponseRecord("org2", {"notes": "   "}),
        ResponseRecord("org3", {"notes": "Transport help"}),
    ]
    result = aggregate([NOTES], responses).questions[0]
    assert result.text_responses == [
        {"text": "More funding", "org_name": "org1"},
        {"text": "Transport help", "org_name": "org3"},
    ]
    assert result.answered == 2


def test_blank_answers_excluded_but_rows_counted():
    responses = [
        ResponseRecord("org1", {}),
        ResponseRecord("org2", {"color": None}),
        ResponseRecord("org3", {"color": "B"}),
    ]
    stats = aggregate([COLOR, SCORE], responses)
    assert stats.total_responses == 3
    color, score = stats.questions
    assert color.answered == 1
    assert sum(b.count for b in color.stats.values()) == 1
    assert score.answered == 0
    assert score.average_rating is None


def test_as_dict_shape():
    data = aggregate([COLOR], [ResponseRecord("org1", {"color": "A"})]).as_dict()
    assert data["total_responses"] == 1
    assert data["questions"][0]["stats"]["A"] == {"count": 1, "organizations": ["org1"]}


class TestValidateAnswers:
    def test_valid_answers(self):
        answers = {"color": "A", "topics": ["health"], "score": 5, "notes": "ok"}
        assert validate_answers([COLOR, TOPICS, SCORE, NOTES], answers) == []

    def test_required_question_missing(self):
        required = q(id="must", type="text", required=True)
        assert validate_answers([required], {}) == ["Question 'must' is required"]

    def test_choice_outside_options(self):
        assert validate_answers([COLOR], {"color": "Z"})

    def test_checkbox_requires_list(self):
        assert validate_answers([TOPICS], {"topics": "health"})

    def test_checkbox_rejects_repeated_option(self):
        errors = validate_answers([TOPICS], {"topics": ["health", "health"]})
        assert errors == ["Question 'topics' lists an option more than once"]

    def test_rating_out_of_bounds(self):
        errors = validate_answers([SCORE], {"score": 9})
        assert errors == ["Question 'score' must be a rating between 1 and 5"]


def test_choice_question_needs_options():
    with pytest.raises(ValueError):
        Question.model_validate({"id": "x", "type": "multipleChoice"})
