import asyncio
import datetime
import logging
from typing import Any, List, Optional

import sqlalchemy
from pydantic import ValidationError
from eventapi.database import database, form_table, response_table, is_valid_id, new_id
from eventapi.errors import ApiError, validation_failed
from eventapi.models.form import Form, FormIn, FormSummary, FormUpdate
from eventapi.models.user import User
from eventapi.services.normalize import map_incoming_questions

logger = logging.getLogger(__name__)

HIDDEN_SETTINGS = ("redirectUrl",)


def _form_from_row(row) -> Form:
    return Form(
        id=row.id,
        title=row.title,
        description=row.description,
        settings=row.settings or {},
        is_published=bool(row.is_published),
        questions=row.questions or [],
        created_by=row.created_by,
        response_count=row.response_count or 0,
        created_at=row.created_at,
    )


def _columns(payload: FormIn, fields=None) -> dict:
    values = payload.model_dump(mode="json", include=fields)
    if "questions" in values:
        # stored in their wire shape (qId, not q_id)
        values["questions"] = [q.model_dump(mode="json", by_alias=True) for q in payload.questions]
    return values


def check_form_id(fid: Any) -> None:
    if not is_valid_id(fid):
        raise ApiError("Invalid form id", 400)


async def find_form(fid: str) -> Optional[Form]:
    row = await database.fetch_one(form_table.select().where(form_table.c.id == fid))
    return _form_from_row(row) if row else None


async def create_form(incoming: dict, user: Optional[User] = None) -> Form:
    questions = map_incoming_questions(incoming)

    try:
        payload = FormIn(
            title=incoming.get("title"),
            description=incoming.get("description"),
            settings=incoming.get("settings") or {},
            is_published=incoming.get("isPublished") is True,
            questions=questions,
        )
    except ValidationError as e:
        raise validation_failed(e) from e

    values = {
        "id": new_id(),
        **_columns(payload),
        "response_count": 0,
        "created_at": datetime.datetime.now(datetime.timezone.utc),
    }
    if user is not None and user.id is not None:
        values["created_by"] = user.id

    logger.debug("Creating form", extra={"form_id": values["id"], "questions": len(questions)})
    await database.execute(form_table.insert().values(**values))
    return await find_form(values["id"])


async def list_forms() -> List[FormSummary]:
    query = sqlalchemy.select(
        form_table.c.id,
        form_table.c.title,
        form_table.c.created_at,
        form_table.c.response_count,
    ).order_by(form_table.c.created_at.desc())
    rows = await database.fetch_all(query)
    return [
        FormSummary(
            id=row.id,
            title=row.title,
            created_at=row.created_at,
            response_count=row.response_count or 0,
        )
        for row in rows
    ]


async def get_form(fid: str) -> Form:
    check_form_id(fid)
    form = await find_form(fid)
    if not form:
        raise ApiError("Form not found", 404)
    form.settings = {k: v for k, v in form.settings.items() if k not in HIDDEN_SETTINGS}
    return form


async def update_form(fid: str, update: dict) -> Form:
    check_form_id(fid)
    form = await find_form(fid)
    if not form:
        raise ApiError("Form not found", 404)

    try:
        changes = FormUpdate.model_validate(update).model_dump(exclude_unset=True)
        merged = FormIn.model_validate({**form.model_dump(include=set(FormIn.model_fields)), **changes})
    except ValidationError as e:
        raise validation_failed(e) from e

    values = _columns(merged, set(changes))
    if values:
        await database.execute(form_table.update().where(form_table.c.id == fid).values(**values))
    logger.debug("Updated form", extra={"form_id": fid, "fields": sorted(values)})
    return await find_form(fid)


def can_delete(form: Form, user: Optional[User]) -> bool:
    if user is not None and form.created_by is not None and form.created_by == user.id:
        return True
    return form.created_by is None or (user is not None and user.is_admin)


async def delete_form(fid: str, user: Optional[User] = None) -> bool:
    check_form_id(fid)
    form = await find_form(fid)
    if not form:
        raise ApiError("Form not found", 404)

    if not can_delete(form, user):
        raise ApiError("Not authorized to delete this form", 403)

    # Not a transaction: either statement may fail without undoing the other.
    results = await asyncio.gather(
        database.execute(response_table.delete().where(response_table.c.form_id == fid)),
        database.execute(form_table.delete().where(form_table.c.id == fid)),
        return_exceptions=True,
    )
    for target, result in zip(("responses", "form"), results):
        if isinstance(result, Exception):
            logger.error(
                "Cascade delete step failed",
                extra={"form_id": fid, "target": target},
                exc_info=result,
            )
    return True
