from datetime import datetime

from pydantic import EmailStr, field_validator

from schemas.base import BaseSchema
from db.tables.user import StaffRole


class UserSchemaBase(BaseSchema):
    username: str
    email: EmailStr
    role: StaffRole

    @field_validator('role', mode='before')
    @classmethod
    def normalize_role(cls, v):
        if isinstance(v, str):
            return v.lower()
        return v


class OutUserSchema(UserSchemaBase):
    id: int
    is_active: bool
    created_at: datetime
    updated_at: datetime
