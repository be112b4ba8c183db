import datetime
import logging
from typing import Any, List, Optional

from eventapi.database import database, form_table, response_table, new_id
from eventapi.errors import ApiError
from eventapi.models.form import Form, FormResponse
from eventapi.models.user import User
from eventapi.services.form import find_form, check_form_id

logger = logging.getLogger(__name__)


def _is_blank(answer: Any) -> bool:
    if answer is None:
        return True
    if isinstance(answer, (str, list, dict)):
        return len(answer) == 0
    return False


def _response_from_row(row) -> FormResponse:
    return FormResponse(
        id=row.id,
        form_id=row.form_id,
        answers=row.answers or {},
        submitted_by=row.submitted_by,
        created_at=row.created_at,
    )


async def _load_form(fid: str) -> Form:
    check_form_id(fid)
    form = await find_form(fid)
    if not form:
        raise ApiError("Form not found", 404)
    return form


async def submit_response(fid: str, answers: dict, user: Optional[User] = None) -> FormResponse:
    form = await _load_form(fid)

    if not form.is_published:
        raise ApiError("Form is not accepting responses", 400)
    if form.settings.get("requiresLogin") and user is None:
        raise ApiError("Auth required", 401)

    known = {q.q_id for q in form.questions}
    kept = {k: v for k, v in answers.items() if k in known}
    missing = [q.q_id for q in form.questions if q.req and _is_blank(kept.get(q.q_id))]
    if missing:
        raise ApiError(
            "Required questions are unanswered",
            422,
            errors=[{"loc": ["answers", q_id], "msg": "Field required", "type": "missing"} for q_id in missing],
        )

    values = {
        "id": new_id(),
        "form_id": fid,
        "answers": kept,
        "submitted_by": user.id if user is not None else None,
        "created_at": datetime.datetime.now(datetime.timezone.utc),
    }
    async with database.transaction():
        await database.execute(response_table.insert().values(**values))
        await database.execute(
            form_table.update()
            .where(form_table.c.id == fid)
            .values(response_count=form_table.c.response_count + 1)
        )
    logger.info("Response submitted", extra={"form_id": fid, "response_id": values["id"]})

    row = await database.fetch_one(response_table.select().where(response_table.c.id == values["id"]))
    return _response_from_row(row)


async def list_responses(fid: str, user: User) -> List[FormResponse]:
    form = await _load_form(fid)

    is_owner = form.created_by is not None and form.created_by == user.id
    if not (is_owner or user.is_admin):
        raise ApiError("Not authorized to view responses for this form", 403)

    query = (
        response_table.select()
        .where(response_table.c.form_id == fid)
        .order_by(response_table.c.created_at.desc())
    )
    rows = await database.fetch_all(query)
    return [_response_from_row(row) for row in rows]
