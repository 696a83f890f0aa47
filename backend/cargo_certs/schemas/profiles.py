from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from cargo_certs.models.domain import RoleName


class ProfileRead(BaseModel):
    id: str
    email: str
    full_name: Optional[str] = None
    role: RoleName
    broker_code: Optional[str] = None
    active: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class ProfileSelfUpdate(BaseModel):
    full_name: Optional[str] = None


class ProfileAdminUpdate(BaseModel):
    # Role stays a plain string so an unknown value reports "Invalid role".
    role: Optional[str] = None
    broker_code: Optional[str] = None
    full_name: Optional[str] = None


class BrokerRead(BaseModel):
    id: str
    broker_code: str
    full_name: Optional[str] = None

    class Config:
        from_attributes = True
