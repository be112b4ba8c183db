from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

QuestionType = Literal[
    "text", "textarea", "radio", "checkbox", "dropdown", "rating", "scale", "date", "email"
]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Option(CamelModel):
    val: str
    lbl: str = ""


class Question(CamelModel):
    q_id: str = Field(min_length=1)
    type: QuestionType = "text"
    text: str
    desc: Optional[str] = None
    req: bool = False
    opts: List[Option] = []


class FormIn(CamelModel):
    """Validated payload written on create and after an update is merged."""

    model_config = ConfigDict(extra="ignore")

    title: str = Field(min_length=1, max_length=256)
    description: Optional[str] = None
    settings: Dict[str, Any] = {}
    is_published: bool = False
    questions: List[Question] = []

    @model_validator(mode="after")
    def unique_question_ids(self):
        seen = set()
        for question in self.questions:
            if question.q_id in seen:
                raise ValueError(f"Duplicate question id '{question.q_id}'")
            seen.add(question.q_id)
        return self


class FormUpdate(CamelModel):
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = None
    description: Optional[str] = None
    settings: Optional[Dict[str, Any]] = None
    is_published: Optional[bool] = None
    questions: Optional[List[Question]] = None


class Form(FormIn):
    id: str
    created_by: Optional[int] = None
    response_count: int = 0
    created_at: datetime


class FormSummary(CamelModel):
    id: str
    title: str
    created_at: datetime
    response_count: int = 0


class FormResponseIn(CamelModel):
    answers: Dict[str, Any] = {}


class FormResponse(CamelModel):
    id: str
    form_id: str
    answers: Dict[str, Any]
    submitted_by: Optional[int] = None
    created_at: datetime
