from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class CertificateBase(BaseModel):
    contract_id: Optional[str] = None
    insured_name: Optional[str] = None
    cargo_description: Optional[str] = None
    departure_country: Optional[str] = None
    arrival_country: Optional[str] = None
    transport_means: Optional[str] = None
    loading_date: Optional[date] = None
    issue_date: Optional[date] = None
    currency: Optional[str] = None
    value_local: Optional[float] = None


class CertificateCreate(CertificateBase):
    """EUR value and rate are computed server-side; they are not accepted."""


class CertificateUpdate(CertificateBase):
    pass


class ContractSummaryRead(BaseModel):
    contract_number: str
    insured_name: str
    coverage_type: str
    start_date: date
    end_date: date
    broker_code: str
    sum_insured: float
    additional_si_percentage: float

    class Config:
        from_attributes = True


class CertificateRead(BaseModel):
    id: str
    certificate_number: str
    contract_id: str
    insured_name: str
    cargo_description: str
    departure_country: str
    arrival_country: str
    transport_means: str
    loading_date: date
    issue_date: date
    currency: str
    value_local: float
    value_euro: float
    exchange_rate: float
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    contract: Optional[ContractSummaryRead] = None

    class Config:
        from_attributes = True
