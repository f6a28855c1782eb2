"""Data models for CA state, issuance and batch results."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

from .exceptions import FatalPKIError


class StoreStatus(Enum):
    """Lifecycle of the on-disk CA store."""

    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    ROOT_READY = "root-ready"


class CertificateStatus(Enum):
    """Lifecycle of a single issued certificate."""

    REQUESTED = "requested"
    SIGNED = "signed"
    TRANSFERRED = "transferred"
    PURGED_LOCAL = "purged-local"
    SKIPPED = "skipped"
    ABORTED = "aborted"


class IssuanceOutcome(Enum):
    """Per-name outcome reported back to the caller."""

    SIGNED_TRANSFERRED = "signed+transferred"
    SKIPPED = "skipped"
    FATAL_ABORT = "fatal-abort"


@dataclass(frozen=True)
class CertificateRequest:
    """Subject and validity for one issuance call. Not persisted."""

    common_name: str
    organization: str
    country: str
    state: str
    city: str
    contact_email: str
    validity_days: int


@dataclass
class IssuedCertificate:
    """A leaf certificate and the local artifacts produced for it."""

    common_name: str
    cert_path: Path
    key_path: Path
    serial: str = ""
    fingerprint: str = ""
    status: CertificateStatus = CertificateStatus.REQUESTED


@dataclass(frozen=True)
class LedgerEntry:
    """One row of the CA ledger (OpenSSL ``ca`` database format).

    Rows are tab-separated: status flag, expiry, revocation date, serial,
    file name and subject.
    """

    status: str
    expires: datetime
    revoked: str
    serial: str
    filename: str
    subject: str


@dataclass
class BootstrapResult:
    """Result of bringing the CA store to the root-ready state."""

    status: StoreStatus
    root_cert_path: Path
    root_key_path: Path
    root_generated: bool = False


@dataclass
class BatchResult:
    """Result of issuing a batch of common names.

    Contains ordered per-name outcomes, issued certificates and the
    fingerprint audit of installed certificates.
    """

    outcomes: dict[str, IssuanceOutcome] = field(default_factory=dict)
    certificates: list[IssuedCertificate] = field(default_factory=list)
    fatal_error: FatalPKIError | None = None
    root_published: bool = False
    fingerprints: dict[str, str] = field(default_factory=dict)

    @property
    def aborted(self) -> bool:
        return self.fatal_error is not None

    @property
    def skipped_names(self) -> list[str]:
        return [cn for cn, o in self.outcomes.items() if o is IssuanceOutcome.SKIPPED]
