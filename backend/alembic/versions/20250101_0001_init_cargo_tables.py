"""init cargo certificate tables

Revision ID: 20250101_0001_init_cargo_tables
Revises: None
Create Date: 2025-01-01
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20250101_0001_init_cargo_tables"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "profiles",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("hashed_password", sa.String(length=255), nullable=False),
        sa.Column("full_name", sa.String(length=100), nullable=True),
        sa.Column(
            "role",
            sa.Enum("admin", "broker", name="rolename", native_enum=False),
            nullable=False,
        ),
        sa.Column("broker_code", sa.String(length=50), nullable=True),
        sa.Column("active", sa.Boolean(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_profiles_email", "profiles", ["email"], unique=True)
    op.create_index("ix_profiles_broker_code", "profiles", ["broker_code"])

    op.create_table(
        "audit_logs",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("action", sa.String(length=128), nullable=False),
        sa.Column(
            "profile_id",
            sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("payload_json", sa.Text(), nullable=True),
        sa.Column("request_id", sa.String(length=64), nullable=True),
        sa.Column("ip", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=256), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_audit_logs_action", "audit_logs", ["action"])
    op.create_index("ix_audit_logs_profile_id", "audit_logs", ["profile_id"])
    op.create_index("ix_audit_logs_request_id", "audit_logs", ["request_id"])

    op.create_table(
        "contracts",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("contract_number", sa.String(length=50), nullable=False),
        sa.Column("insured_name", sa.String(length=200), nullable=False),
        sa.Column("coverage_type", sa.String(length=100), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("broker_code", sa.String(length=50), nullable=False),
        sa.Column("sum_insured", sa.Float(), nullable=False),
        sa.Column("additional_si_percentage", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("end_date >= start_date", name="ck_contracts_date_window"),
        sa.CheckConstraint("sum_insured > 0", name="ck_contracts_sum_insured_positive"),
        sa.CheckConstraint(
            "additional_si_percentage >= 0", name="ck_contracts_additional_si_non_negative"
        ),
    )
    op.create_index("ix_contracts_contract_number", "contracts", ["contract_number"], unique=True)
    op.create_index("ix_contracts_broker_code", "contracts", ["broker_code"])

    op.create_table(
        "certificates",
        sa.Column("id", sa.String(length=36), primary_key=True),
        sa.Column("certificate_number", sa.String(length=32), nullable=False),
        sa.Column(
            "contract_id", sa.String(length=36), sa.ForeignKey("contracts.id"), nullable=False
        ),
        sa.Column("insured_name", sa.String(length=200), nullable=False),
        sa.Column("cargo_description", sa.Text(), nullable=False),
        sa.Column("departure_country", sa.String(length=100), nullable=False),
        sa.Column("arrival_country", sa.String(length=100), nullable=False),
        sa.Column("transport_means", sa.String(length=100), nullable=False),
        sa.Column("loading_date", sa.Date(), nullable=False),
        sa.Column("issue_date", sa.Date(), nullable=False),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("value_local", sa.Float(), nullable=False),
        sa.Column("value_euro", sa.Float(), nullable=False),
        sa.Column("exchange_rate", sa.Float(), nullable=False),
        sa.Column(
            "created_by",
            sa.String(length=36),
            sa.ForeignKey("profiles.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("value_local >= 0", name="ck_certificates_value_local_non_negative"),
    )
    op.create_index(
        "ix_certificates_certificate_number", "certificates", ["certificate_number"], unique=True
    )
    op.create_index("ix_certificates_contract_id", "certificates", ["contract_id"])


def downgrade() -> None:
    op.drop_index("ix_certificates_contract_id", table_name="certificates")
    op.drop_index("ix_certificates_certificate_number", table_name="certificates")
    op.drop_table("certificates")
    op.drop_index("ix_contracts_broker_code", table_name="contracts")
    op.drop_index("ix_contracts_contract_number", table_name="contracts")
    op.drop_table("contracts")
    op.drop_index("ix_audit_logs_request_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_profile_id", table_name="audit_logs")
    op.drop_index("ix_audit_logs_action", table_name="audit_logs")
    op.drop_table("audit_logs")
    op.drop_index("ix_profiles_broker_code", table_name="profiles")
    op.drop_index("ix_profiles_email", table_name="profiles")
    op.drop_table("profiles")
