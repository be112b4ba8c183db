"""
Mapping of externally authored survey schemas onto :class:`Question` records.

Two source shapes are understood:

* a flat ``questions`` list whose elements carry a ``type`` (already close to
  our own representation), and
* a survey-builder document where the elements live in ``pages[0].elements``.

Anything else degrades to defaults instead of failing.
"""
from typing import Any, List, Optional

from eventapi.models.form import Option, Question

TYPE_MAP = {
    "text": "text",
    "comment": "textarea",
    "radiogroup": "radio",
    "checkbox": "checkbox",
    "dropdown": "dropdown",
    "rating": "rating",
    "scale": "scale",
    "date": "date",
    "email": "email",
}


def _as_mapping(value: Any) -> dict:
    return value if isinstance(value, dict) else {}


def _to_str(value: Any) -> str:
    """Render a scalar the way survey builders serialise it (true, 1 rather than True, 1.0)."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _scalar_text(value: Any) -> Optional[str]:
    if isinstance(value, (str, int, float)):
        return _to_str(value)
    return None


def select_elements(incoming: Any) -> List[Any]:
    """Pick the list of raw question elements out of the incoming payload."""
    incoming = _as_mapping(incoming)
    questions = incoming.get("questions")

    if isinstance(questions, list) and questions and _as_mapping(questions[0]).get("type"):
        return questions

    pages = incoming.get("pages")
    if isinstance(pages, list) and pages:
        elements = _as_mapping(pages[0]).get("elements")
        if isinstance(elements, list):
            return elements

    return questions if isinstance(questions, list) else []


def map_option(choice: Any, position: int) -> Option:
    if isinstance(choice, str):
        return Option(val=str(position), lbl=choice)

    choice = _as_mapping(choice)
    value = choice.get("value")
    label = choice.get("text")
    if label is None:
        label = choice.get("label")
    return Option(
        val=_to_str(position if value is None else value),
        lbl="" if label is None else _to_str(label),
    )


def map_question(element: Any, position: int) -> Question:
    element = _as_mapping(element)

    source_type = element.get("type")
    question_type = TYPE_MAP.get(source_type, "text") if isinstance(source_type, str) else "text"

    titles = [_scalar_text(v) for v in (element.get("title"), element.get("text")) if v]
    text = next((t for t in titles if t), f"Question {position}")

    description = element.get("description")
    choices = element.get("choices")

    return Question(
        q_id=_to_str(element.get("name") or f"q_{position}"),
        type=question_type,
        text=text,
        desc=None if description is None else _scalar_text(description),
        req=bool(element.get("isRequired")),
        opts=[map_option(c, i) for i, c in enumerate(choices, start=1)] if isinstance(choices, list) else [],
    )


def map_incoming_questions(incoming: Any) -> List[Question]:
    return [map_question(el, i) for i, el in enumerate(select_elements(incoming), start=1)]
