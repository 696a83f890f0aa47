from cargo_certs.models.domain import AuditLog, Certificate, Contract, Profile, RoleName

__all__ = [
    "AuditLog",
    "Certificate",
    "Contract",
    "Profile",
    "RoleName",
]
