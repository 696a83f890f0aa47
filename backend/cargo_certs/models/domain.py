import uuid
from datetime import date, datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from cargo_certs.database import Base


def _uuid4_str() -> str:
    return str(uuid.uuid4())


class RoleName(PyEnum):
    admin = "admin"
    broker = "broker"


class Profile(Base):
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid4_str)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    full_name: Mapped[str | None] = mapped_column(String(100))
    role: Mapped[RoleName] = mapped_column(
        Enum(RoleName, native_enum=False), nullable=False, default=RoleName.broker
    )
    # Loose link to Contract.broker_code (by value, not by id).
    broker_code: Mapped[str | None] = mapped_column(String(50), index=True)
    active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_admin(self) -> bool:
        return self.role == RoleName.admin


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    action: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    profile_id: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True, index=True
    )
    payload_json: Mapped[str | None] = mapped_column(Text)
    request_id: Mapped[str | None] = mapped_column(String(64), nullable=True, index=True)
    ip: Mapped[str | None] = mapped_column(String(64), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(String(256), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class Contract(Base):
    __tablename__ = "contracts"
    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="ck_contracts_date_window"),
        CheckConstraint("sum_insured > 0", name="ck_contracts_sum_insured_positive"),
        CheckConstraint(
            "additional_si_percentage >= 0", name="ck_contracts_additional_si_non_negative"
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid4_str)
    contract_number: Mapped[str] = mapped_column(String(50), unique=True, nullable=False, index=True)
    insured_name: Mapped[str] = mapped_column(String(200), nullable=False)
    coverage_type: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    broker_code: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    sum_insured: Mapped[float] = mapped_column(Float, nullable=False)
    additional_si_percentage: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    certificates = relationship("Certificate", back_populates="contract")


class Certificate(Base):
    __tablename__ = "certificates"
    __table_args__ = (
        CheckConstraint("value_local >= 0", name="ck_certificates_value_local_non_negative"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid4_str)
    # CERT-YYYY-NNNN; the unique index turns a concurrent duplicate allocation into a conflict.
    certificate_number: Mapped[str] = mapped_column(
        String(32), unique=True, nullable=False, index=True
    )
    contract_id: Mapped[str] = mapped_column(
        ForeignKey("contracts.id"), nullable=False, index=True
    )
    insured_name: Mapped[str] = mapped_column(String(200), nullable=False)
    cargo_description: Mapped[str] = mapped_column(Text, nullable=False)
    departure_country: Mapped[str] = mapped_column(String(100), nullable=False)
    arrival_country: Mapped[str] = mapped_column(String(100), nullable=False)
    transport_means: Mapped[str] = mapped_column(String(100), nullable=False)
    loading_date: Mapped[date] = mapped_column(Date, nullable=False)
    issue_date: Mapped[date] = mapped_column(Date, nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    value_local: Mapped[float] = mapped_column(Float, nullable=False)
    value_euro: Mapped[float] = mapped_column(Float, nullable=False)
    exchange_rate: Mapped[float] = mapped_column(Float, nullable=False)
    created_by: Mapped[str | None] = mapped_column(
        ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    contract = relationship("Contract", back_populates="certificates", lazy="joined")

    @validates("currency")
    def _normalize_currency(self, _key, value: str) -> str:
        return str(value or "").strip().upper()
