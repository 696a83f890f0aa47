from pydantic import BaseModel


class CurrencyRead(BaseModel):
    code: str
    name: str


class ConversionRead(BaseModel):
    amount: float
    currency: str
    value_euro: float
    exchange_rate: float
    rate_date: str
