import base64
import binascii
import datetime
import logging
from typing import Dict, List, Optional, Tuple
from uuid import uuid4

from werkzeug.utils import secure_filename
from eventapi.database import database, certificate_table, form_table, is_valid_id, new_id
from eventapi.errors import ApiError
from eventapi.models.certificate import Certificate, CertificateIn, FormRef, TemplateInfo
from eventapi.models.user import User
from eventapi.storage import MinioStorage

logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    "pdf": "application/pdf",
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
}

SIGNATURES = (
    (b"%PDF", "pdf"),
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"\xff\xd8\xff", "jpg"),
)


def sniff_extension(data: bytes) -> Optional[str]:
    for signature, ext in SIGNATURES:
        if data.startswith(signature):
            return ext
    return None


def decode_template(encoded: str) -> Tuple[bytes, str]:
    # data URLs carry a "data:<type>;base64," prefix
    if encoded.startswith("data:") and "," in encoded:
        encoded = encoded.split(",", 1)[1]
    try:
        data = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ApiError("Template is not valid base64", 400) from e

    ext = sniff_extension(data)
    if ext is None:
        raise ApiError("Template must be a PDF, PNG or JPEG file", 400)
    return data, ext


async def _form_ref(form_id: str) -> Optional[FormRef]:
    query = form_table.select().where(form_table.c.id == form_id)
    row = await database.fetch_one(query)
    return FormRef(id=row.id, title=row.title) if row else None


async def _certificate_from_row(row) -> Certificate:
    template = None
    if row.template_object:
        template = TemplateInfo(
            object_name=row.template_object,
            filename=row.template_filename,
            content_type=row.template_content_type,
        )
    return Certificate(
        id=row.id,
        name=row.name,
        description=row.description,
        form_id=row.form_id,
        form=await _form_ref(row.form_id),
        field_mapping=row.field_mapping or {},
        template=template,
        created_by=row.created_by,
        created_at=row.created_at,
    )


async def _fetch_row(cid: str):
    if not is_valid_id(cid):
        raise ApiError("Invalid certificate id", 400)
    row = await database.fetch_one(certificate_table.select().where(certificate_table.c.id == cid))
    if not row:
        raise ApiError("Certificate not found", 404)
    return row


def _store(storage: MinioStorage, filename: str, data: bytes, content_type: str) -> str:
    obj_name = f"{uuid4().hex}_{filename}"
    try:
        storage.put(obj_name, data, content_type)
    except Exception as e:
        logger.error(f"MinIO upload failed: {e}")
        raise ApiError("Failed to upload file to storage", 500) from e
    return obj_name


async def list_certificates() -> List[Certificate]:
    query = certificate_table.select().order_by(certificate_table.c.created_at.desc())
    rows = await database.fetch_all(query)
    return [await _certificate_from_row(row) for row in rows]


async def get_certificate(cid: str) -> Certificate:
    return await _certificate_from_row(await _fetch_row(cid))


async def create_certificate(payload: CertificateIn, user: User, storage: MinioStorage) -> Certificate:
    if not payload.name.strip():
        raise ApiError("Certificate name is required", 400)
    if not is_valid_id(payload.form_id):
        raise ApiError("Invalid form id", 400)
    if await _form_ref(payload.form_id) is None:
        raise ApiError("Form not found", 404)

    values = {
        "id": new_id(),
        "name": payload.name.strip(),
        "description": payload.description,
        "form_id": payload.form_id,
        "field_mapping": payload.field_mapping,
        "created_by": user.id,
        "created_at": datetime.datetime.now(datetime.timezone.utc),
    }

    if payload.template:
        data, ext = decode_template(payload.template)
        filename = secure_filename(f"{values['name']}.{ext}") or f"template.{ext}"
        values["template_object"] = _store(storage, filename, data, CONTENT_TYPES[ext])
        values["template_filename"] = filename
        values["template_content_type"] = CONTENT_TYPES[ext]

    await database.execute(certificate_table.insert().values(**values))
    logger.info("Certificate created", extra={"certificate_id": values["id"], "form_id": payload.form_id})
    return await get_certificate(values["id"])


async def upload_template(
    cid: str, filename: str, content_type: Optional[str], data: bytes, storage: MinioStorage
) -> Certificate:
    row = await _fetch_row(cid)

    if not data:
        raise ApiError("No file provided", 400)
    ext = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    if ext not in CONTENT_TYPES:
        raise ApiError("File type not allowed", 400)

    safe_name = secure_filename(filename) or f"template.{ext}"
    content_type = content_type or CONTENT_TYPES[ext]
    obj_name = _store(storage, safe_name, data, content_type)

    await database.execute(
        certificate_table.update()
        .where(certificate_table.c.id == cid)
        .values(
            template_object=obj_name,
            template_filename=safe_name,
            template_content_type=content_type,
        )
    )
    if row.template_object:
        storage.remove(row.template_object)
    return await get_certificate(cid)


async def update_mapping(cid: str, field_mapping: Dict[str, str]) -> Certificate:
    await _fetch_row(cid)
    await database.execute(
        certificate_table.update()
        .where(certificate_table.c.id == cid)
        .values(field_mapping=field_mapping)
    )
    return await get_certificate(cid)


async def read_template(cid: str, storage: MinioStorage) -> Tuple[bytes, TemplateInfo]:
    certificate = await get_certificate(cid)
    if certificate.template is None:
        raise ApiError("Certificate has no template", 404)
    try:
        data = storage.get(certificate.template.object_name)
    except Exception as e:
        logger.error(f"MinIO download failed: {e}")
        raise ApiError("Failed to read template from storage", 500) from e
    return data, certificate.template


async def delete_certificate(cid: str, user: User, storage: MinioStorage) -> bool:
    row = await _fetch_row(cid)

    is_owner = row.created_by is None or row.created_by == user.id
    if not (is_owner or user.is_admin):
        raise ApiError("Not authorized to delete this certificate", 403)

    await database.execute(certificate_table.delete().where(certificate_table.c.id == cid))
    if row.template_object:
        storage.remove(row.template_object)
    return True
