"""Question schema embedded in alerts and surveys."""

from typing import Literal

from pydantic import Field, model_validator

from coalition.schemas.common import CamelModel

QuestionType = Literal["multipleChoice", "checkbox", "text", "rating"]


class Question(CamelModel):
    id: str = Field(min_length=1)
    type: QuestionType
    text: str = ""
    required: bool = False
    options: list[str] | None = None
    min_value: int | None = None
    max_value: int | None = None
    text_type: Literal["short", "long"] | None = None

    @model_validator(mode="after")
    def check_shape(self) -> "Question":
        if self.type in ("multipleChoice", "checkbox") and not self.options:
            raise ValueError(f"question '{self.id}' needs at least one option")
        if self.type == "rating":
            low = self.min_value if self.min_value is not None else 1
            high = self.max_value if self.max_value is not None else 5
            if low > high:
                raise ValueError(f"question '{self.id}' has minValue greater than maxValue")
        return self

    @property
    def rating_bounds(self) -> tuple[int, int]:
        return (
            self.min_value if self.min_value is not None else 1,
            self.max_value if self.max_value is not None else 5,
        )


def dump_questions(questions: list[Question] | None) -> list[dict]:
    """Serialize questions for the JSON column (camelCase, like the API)."""
    return [q.model_dump(by_alias=True, exclude_none=True) for q in questions or []]


def load_questions(raw: list[dict] | None) -> list[Question]:
    return [Question.model_validate(q) for q in raw or []]
