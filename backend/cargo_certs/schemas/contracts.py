from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel


class ContractBase(BaseModel):
    contract_number: Optional[str] = None
    insured_name: Optional[str] = None
    coverage_type: Optional[str] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    broker_code: Optional[str] = None
    sum_insured: Optional[float] = None
    additional_si_percentage: Optional[float] = None


class ContractCreate(ContractBase):
    pass


class ContractUpdate(ContractBase):
    pass


class ContractRead(BaseModel):
    id: str
    contract_number: str
    insured_name: str
    coverage_type: str
    start_date: date
    end_date: date
    broker_code: str
    sum_insured: float
    additional_si_percentage: float
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
