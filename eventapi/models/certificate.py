from datetime import datetime
from typing import Dict, Optional

from pydantic import Field

from eventapi.models.form import CamelModel


class CertificateIn(CamelModel):
    name: str = Field(min_length=1, max_length=256)
    description: Optional[str] = None
    form_id: str
    field_mapping: Dict[str, str] = {}
    # base64 encoded file content
    template: Optional[str] = None


class FieldMappingIn(CamelModel):
    field_mapping: Dict[str, str]


class TemplateInfo(CamelModel):
    object_name: str
    filename: Optional[str] = None
    content_type: str


class FormRef(CamelModel):
    id: str
    title: str


class Certificate(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    form_id: str
    form: Optional[FormRef] = None
    field_mapping: Dict[str, str] = {}
    template: Optional[TemplateInfo] = None
    created_by: Optional[int] = None
    created_at: datetime
