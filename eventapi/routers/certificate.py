import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, Response, UploadFile
from eventapi.models.certificate import CertificateIn, FieldMappingIn
from eventapi.models.user import User
from eventapi.security import get_current_user
from eventapi.services import certificate as certificate_service
from eventapi.storage import MinioStorage, get_storage
from eventapi.utils import response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", status_code=200)
async def list_certificates(current_user: Annotated[User, Depends(get_current_user)]):
    certificates = await certificate_service.list_certificates()
    return response.ok(certificates)


@router.post("", status_code=201)
async def create_certificate(
    certificate: CertificateIn,
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[MinioStorage, Depends(get_storage)],
):
    created = await certificate_service.create_certificate(certificate, current_user, storage)
    return response.created(created)


@router.get("/{cid}", status_code=200)
async def get_certificate(cid: str, current_user: Annotated[User, Depends(get_current_user)]):
    certificate = await certificate_service.get_certificate(cid)
    return response.ok(certificate)


@router.post("/{cid}/template", status_code=200)
async def upload_template(
    cid: str,
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[MinioStorage, Depends(get_storage)],
    file: UploadFile = File(...),
):
    data = await file.read()
    certificate = await certificate_service.upload_template(
        cid, file.filename or "", file.content_type, data, storage
    )
    return response.ok(certificate, "Template uploaded")


@router.put("/{cid}/mapping", status_code=200)
async def update_mapping(
    cid: str,
    mapping: FieldMappingIn,
    current_user: Annotated[User, Depends(get_current_user)],
):
    certificate = await certificate_service.update_mapping(cid, mapping.field_mapping)
    return response.ok(certificate)


@router.get("/{cid}/preview", status_code=200)
async def preview_certificate(
    cid: str,
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[MinioStorage, Depends(get_storage)],
):
    data, template = await certificate_service.read_template(cid, storage)
    filename = template.filename or f"certificate-{cid}"
    return Response(
        content=data,
        media_type=template.content_type,
        headers={"Content-Disposition": f'inline; filename="{filename}"'},
    )


@router.delete("/{cid}", status_code=200)
async def delete_certificate(
    cid: str,
    current_user: Annotated[User, Depends(get_current_user)],
    storage: Annotated[MinioStorage, Depends(get_storage)],
):
    await certificate_service.delete_certificate(cid, current_user, storage)
    return response.ok({})
