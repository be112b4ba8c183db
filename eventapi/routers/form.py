import logging
from typing import Annotated, Any, Dict, Optional

from fastapi import APIRouter, Body, Depends
from eventapi.errors import ApiError
from eventapi.models.form import FormResponseIn
from eventapi.models.user import User
from eventapi.security import get_current_user, get_optional_user
from eventapi.services import form as form_service
from eventapi.services import response as response_service
from eventapi.utils import response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("", status_code=201)
async def create_form(
    incoming: Annotated[Dict[str, Any], Body()],
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
):
    form = await form_service.create_form(incoming, current_user)
    return response.created(form)


@router.get("", status_code=200)
async def list_forms():
    forms = await form_service.list_forms()
    return response.ok(forms)


@router.get("/{fid}", status_code=200)
async def get_form(fid: str, current_user: Annotated[Optional[User], Depends(get_optional_user)]):
    form = await form_service.get_form(fid)
    # checked after the read, so a missing form answers 404 even to anonymous callers
    if form.settings.get("requiresLogin") and current_user is None:
        raise ApiError("Auth required", 401)
    return response.ok(form)


@router.put("/{fid}", status_code=200)
async def update_form(fid: str, update: Annotated[Dict[str, Any], Body()]):
    form = await form_service.update_form(fid, update)
    return response.ok(form)


@router.delete("/{fid}", status_code=200)
async def delete_form(fid: str, current_user: Annotated[Optional[User], Depends(get_optional_user)]):
    await form_service.delete_form(fid, current_user)
    return response.ok({})


@router.post("/{fid}/responses", status_code=201)
async def submit_response(
    fid: str,
    submission: FormResponseIn,
    current_user: Annotated[Optional[User], Depends(get_optional_user)],
):
    entry = await response_service.submit_response(fid, submission.answers, current_user)
    return response.created(entry)


@router.get("/{fid}/responses", status_code=200)
async def list_responses(fid: str, current_user: Annotated[User, Depends(get_current_user)]):
    entries = await response_service.list_responses(fid, current_user)
    return response.ok(entries)
