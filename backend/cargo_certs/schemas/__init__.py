from cargo_certs.schemas.auth import SignupRequest, Token
from cargo_certs.schemas.certificates import (
    CertificateCreate,
    CertificateRead,
    CertificateUpdate,
    ContractSummaryRead,
)
from cargo_certs.schemas.contracts import ContractCreate, ContractRead, ContractUpdate
from cargo_certs.schemas.currency import ConversionRead, CurrencyRead
from cargo_certs.schemas.profiles import (
    BrokerRead,
    ProfileAdminUpdate,
    ProfileRead,
    ProfileSelfUpdate,
)

__all__ = [
    "BrokerRead",
    "CertificateCreate",
    "CertificateRead",
    "CertificateUpdate",
    "ContractCreate",
    "ContractRead",
    "ContractSummaryRead",
    "ContractUpdate",
    "ConversionRead",
    "CurrencyRead",
    "ProfileAdminUpdate",
    "ProfileRead",
    "ProfileSelfUpdate",
    "SignupRequest",
    "Token",
]
