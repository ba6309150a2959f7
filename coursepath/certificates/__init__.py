"""
Certificates Module - Issuance and public verification.
"""

from coursepath.certificates.issuer import (
    CertificateDetails,
    CertificateIssuer,
    IssuedCertificate,
    VerificationResult,
)

__all__ = [
    "CertificateDetails",
    "CertificateIssuer",
    "IssuedCertificate",
    "VerificationResult",
]
