"""Owner credential management schemas. No schema here carries a password."""

from uuid import UUID

from pydantic import BaseModel, EmailStr, field_validator

from src.tablehost.core.security.validators import normalize_email


class OwnerEmailUpdate(BaseModel):
    email: EmailStr

    @field_validator("email")
    @classmethod
    def lowercase_email(cls, v: str) -> str:
        return normalize_email(v)


class OwnerSetupLinkResponse(BaseModel):
    tenant_id: UUID
    setup_link_sent: bool


class OwnerEmailUpdateResponse(BaseModel):
    tenant_id: UUID
    email: str
    setup_link_sent: bool
