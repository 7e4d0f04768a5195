"""Response aggregation for alert and survey summaries.

Turns a flat list of submitted answer maps into per-question tabulations the
admin dashboard charts directly.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Sequence

from coalition.schemas.question import Question

CHOICE_TYPES = ("multipleChoice", "checkbox")


@dataclass(frozen=True)
class ResponseRecord:
    organization_name: str
    answers: dict[str, Any]


@dataclass
class OptionBucket:
    count: int = 0
    organizations: list[str] = field(default_factory=list)

    def add(self, organization_name: str) -> None:
        self.count += 1
        self.organizations.append(organization_name)


@dataclass
class QuestionResult:
    question_id: str
    type: str
    text: str
    answered: int = 0
    stats: dict[str, OptionBucket] = field(default_factory=dict)
    text_responses: list[dict[str, str]] = field(default_factory=list)
    average_rating: float | None = None


@dataclass
class QuestionStats:
    total_responses: int
    questions: list[QuestionResult]

    def as_dict(self) -> dict:
        return {
            "total_responses": self.total_responses,
            "questions": [
                {
                    "question_id": q.question_id,
                    "type": q.type,
                    "text": q.text,
                    "answered": q.answered,
                    "stats": {
                        key: {"count": b.count, "organizations": list(b.organizations)}
                        for key, b in q.stats.items()
                    },
                    "text_responses": list(q.text_responses),
                    "average_rating": q.average_rating,
                }
                for q in self.questions
            ],
        }


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, str) and not answer.strip():
        return True
    if isinstance(answer, (list, tuple)) and not answer:
        return True
    return False


def _as_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def _rating_key(value: float) -> str:
    return str(int(value)) if value == int(value) else str(value)


def _order_choice_buckets(buckets: dict[str, OptionBucket], declared: Sequence[str]) -> dict[str, OptionBucket]:
    # Descending count; ties by declared option order, then first-seen order
    position = {key: i for i, key in enumerate(declared)}
    first_seen = {key: i for i, key in enumerate(buckets)}
    ordered = sorted(
        buckets.items(),
        key=lambda kv: (-kv[1].count, position.get(kv[0], len(declared)), first_seen[kv[0]]),
    )
    return dict(ordered)


def _aggregate_choice(question: Question, responses: Sequence[ResponseRecord]) -> QuestionResult:
    declared = list(question.options or [])
    buckets: dict[str, OptionBucket] = {option: OptionBucket() for option in declared}
    result = QuestionResult(question_id=question.id, type=question.type, text=question.text)

    for response in responses:
        answer = response.answers.get(question.id)
        if _is_blank(answer):
            continue
        values = answer if isinstance(answer, (list, tuple)) else [answer]
        counted = False
        for key in dict.fromkeys(str(value) for value in values if not _is_blank(value)):
            buckets.setdefault(key, OptionBucket()).add(response.organization_name)
            counted = True
        if counted:
            result.answered += 1

    result.stats = _order_choice_buckets(buckets, declared)
    return result


def _aggregate_rating(question: Question, responses: Sequence[ResponseRecord]) -> QuestionResult:
    low, high = question.rating_bounds
    numeric_buckets: dict[float, OptionBucket] = {float(v): OptionBucket() for v in range(low, high + 1)}
    result = QuestionResult(question_id=question.id, type=question.type, text=question.text)
    total = 0.0

    for response in responses:
        value = _as_number(response.answers.get(question.id))
        if value is None:
            continue
        numeric_buckets.setdefault(value, OptionBucket()).add(response.organization_name)
        total += value
        result.answered += 1

    result.stats = {_rating_key(v): numeric_buckets[v] for v in sorted(numeric_buckets)}
    if result.answered:
        result.average_rating = total / result.answered
    return result


def _aggregate_text(question: Question, responses: Sequence[ResponseRecord]) -> QuestionResult:
    result = QuestionResult(question_id=question.id, type=question.type, text=question.text)
    for response in responses:
        answer = response.answers.get(question.id)
        if _is_blank(answer):
            continue
        result.text_responses.append({"text": str(answer), "org_name": response.organization_name})
        result.answered += 1
    return result


def aggregate(questions: Iterable[Question], responses: Iterable[ResponseRecord]) -> QuestionStats:
    """Tabulate answers per question.

    Blank answers (missing, null, empty string, empty list) are excluded from
    every bucket. ``total_responses`` counts response rows regardless of which
    questions they answered.
    """
    responses = list(responses)
    results = []
    for question in questions:
        if question.type in CHOICE_TYPES:
            results.append(_aggregate_choice(question, responses))
        elif question.type == "rating":
            results.append(_aggregate_rating(question, responses))
        else:
            results.append(_aggregate_text(question, responses))
    return QuestionStats(total_responses=len(responses), questions=results)


def validate_answers(questions: Sequence[Question], answers: dict[str, Any]) -> list[str]:
    """Check submitted answers against the question schema; return error messages."""
    errors = []
    for question in questions:
        answer = answers.get(question.id)
        if _is_blank(answer):
            if question.required:
                errors.append(f"Question '{question.id}' is required")
            continue

        if question.type == "multipleChoice":
            if not isinstance(answer, str) or answer not in (question.options or []):
                errors.append(f"Question '{question.id}' must be one of the listed options")
        elif question.type == "checkbox":
            if not isinstance(answer, list):
                errors.append(f"Question '{question.id}' expects a list of options")
            elif any(value not in (question.options or []) for value in answer):
                errors.append(f"Question '{question.id}' contains an unknown option")
            elif len(set(map(str, answer))) != len(answer):
                errors.append(f"Question '{question.id}' lists an option more than once")
        elif question.type == "rating":
            value = _as_number(answer)
            low, high = question.rating_bounds
            if value is None or not low <= value <= high:
                errors.append(f"Question '{question.id}' must be a rating between {low} and {high}")
        elif not isinstance(answer, str):
            errors.append(f"Question '{question.id}' expects a text answer")
    return errors
