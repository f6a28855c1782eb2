"""On-disk CA store: directory layout, serial counter and ledger.

The layout matches an OpenSSL ``ca`` directory so either PKI backend can
operate on the same store::

    <store>/index.txt   ledger, one row per issued certificate
    <store>/serial      next serial, zero-padded upper-case hex
    <store>/certs/      root certificate
    <store>/private/    root key
    <store>/newcerts/   copy of every issued certificate, named by serial
    <store>/crl/        revocation data

The store is single-writer. Callers running more than one engine against
the same store must serialize access themselves.
"""

import os
from datetime import UTC, datetime
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .exceptions import BackendError
from .logging_config import LOGGER
from .models import LedgerEntry, StoreStatus

# UTCTime before 2050, GeneralizedTime from 2050 on (RFC 5280)
LEDGER_TIME_FORMAT = "%y%m%d%H%M%SZ"
LEDGER_GENERALIZED_TIME_FORMAT = "%Y%m%d%H%M%SZ"

_SHORT_NAMES = {
    x509.NameOID.COMMON_NAME: "CN",
    x509.NameOID.COUNTRY_NAME: "C",
    x509.NameOID.STATE_OR_PROVINCE_NAME: "ST",
    x509.NameOID.LOCALITY_NAME: "L",
    x509.NameOID.ORGANIZATION_NAME: "O",
    x509.NameOID.ORGANIZATIONAL_UNIT_NAME: "OU",
    x509.NameOID.EMAIL_ADDRESS: "emailAddress",
}


def format_ledger_time(moment: datetime) -> str:
    """Render an expiry the way OpenSSL writes it into ``index.txt``."""
    if moment.year >= 2050:
        return moment.strftime(LEDGER_GENERALIZED_TIME_FORMAT)
    return moment.strftime(LEDGER_TIME_FORMAT)


def parse_ledger_time(text: str) -> datetime:
    """Parse a two- or four-digit-year ledger timestamp as UTC."""
    time_format = LEDGER_GENERALIZED_TIME_FORMAT if len(text) == 15 else LEDGER_TIME_FORMAT
    return datetime.strptime(text, time_format).replace(tzinfo=UTC)


def format_serial(value: int, width: int = 2) -> str:
    """Format a serial as upper-case hex, zero-padded to an even width."""
    text = f"{value:0{width}X}"
    if len(text) % 2 != 0:
        text = "0" + text
    return text


def next_serial(serial: str) -> str:
    """Return the serial following ``serial``, keeping its width."""
    return format_serial(int(serial, 16) + 1, width=len(serial))


def subject_oneline(name: x509.Name) -> str:
    """Render a name in OpenSSL's ``/C=../CN=..`` one-line form."""
    parts = []
    for attribute in name:
        label = _SHORT_NAMES.get(attribute.oid, attribute.oid.dotted_string)
        parts.append(f"/{label}={attribute.value}")
    return "".join(parts)


class CAStore:
    """Certificate authority state rooted at one directory."""

    def __init__(self, root: Path, ca_file_name: str, first_serial: str = "01") -> None:
        """Initialize store paths.

        Args:
            root: Store directory
            ca_file_name: Base name of the root certificate and key files
            first_serial: Serial written when the counter is created
        """
        self.root = root
        self.ca_file_name = ca_file_name
        self.first_serial = first_serial

    @property
    def index_path(self) -> Path:
        return self.root / "index.txt"

    @property
    def serial_path(self) -> Path:
        return self.root / "serial"

    @property
    def certs_dir(self) -> Path:
        return self.root / "certs"

    @property
    def private_dir(self) -> Path:
        return self.root / "private"

    @property
    def newcerts_dir(self) -> Path:
        return self.root / "newcerts"

    @property
    def crl_dir(self) -> Path:
        return self.root / "crl"

    @property
    def root_cert_path(self) -> Path:
        return self.certs_dir / f"{self.ca_file_name}.pem"

    @property
    def root_key_path(self) -> Path:
        return self.private_dir / f"{self.ca_file_name}.key"

    def status(self) -> StoreStatus:
        """Report how far the store has been set up."""
        if not self.index_path.exists() or not self.serial_path.exists():
            return StoreStatus.UNINITIALIZED
        if not self.root_cert_path.exists():
            return StoreStatus.INITIALIZED
        return StoreStatus.ROOT_READY

    def ensure_initialized(self) -> bool:
        """Create ledger, serial counter and subdirectories if absent.

        Returns:
            True if anything was created, False if the store was already set up
        """
        created = False
        if not self.index_path.exists():
            LOGGER.info("Generating CA directory structure in %s", self.root)
            self.root.mkdir(parents=True, exist_ok=True)
            for directory in (self.newcerts_dir, self.crl_dir, self.certs_dir, self.private_dir):
                directory.mkdir(parents=True, exist_ok=True)
            self.index_path.touch()
            created = True
        if not self.serial_path.exists():
            self._write_serial(self.first_serial)
            created = True
        return created

    def read_serial(self) -> str:
        """Return the serial the next signature will consume."""
        try:
            serial = self.serial_path.read_text().strip()
        except FileNotFoundError as e:
            raise BackendError(f"CA store not initialized: {self.serial_path} missing") from e
        if not serial:
            raise BackendError(f"serial file {self.serial_path} is empty")
        return serial

    def _write_serial(self, serial: str) -> None:
        tmp_path = self.serial_path.with_name("serial.new")
        tmp_path.write_text(serial + "\n")
        os.replace(tmp_path, self.serial_path)

    def record_issuance(self, serial: str, cert: x509.Certificate) -> LedgerEntry:
        """Commit a signed certificate: ledger row, newcerts copy, serial bump.

        Args:
            serial: Serial the certificate was signed with
            cert: The signed certificate

        Returns:
            The ledger entry that was appended

        Raises:
            BackendError: If ``serial`` is not the store's current serial
        """
        current = self.read_serial()
        if serial != current or cert.serial_number != int(serial, 16):
            raise BackendError(f"serial {serial} does not match store serial {current}")

        entry = LedgerEntry(
            status="V",
            expires=cert.not_valid_after_utc,
            revoked="",
            serial=serial,
            filename="unknown",
            subject=subject_oneline(cert.subject),
        )
        (self.newcerts_dir / f"{serial}.pem").write_bytes(
            cert.public_bytes(serialization.Encoding.PEM)
        )
        with self.index_path.open("a") as ledger:
            ledger.write(
                "\t".join(
                    [
                        entry.status,
                        format_ledger_time(entry.expires),
                        entry.revoked,
                        entry.serial,
                        entry.filename,
                        entry.subject,
                    ]
                )
                + "\n"
            )
        self._write_serial(next_serial(serial))
        return entry

    def ledger(self) -> list[LedgerEntry]:
        """Parse all ledger rows in order."""
        if not self.index_path.exists():
            return []
        entries = []
        for line in self.index_path.read_text().splitlines():
            if not line.strip():
                continue
            status, expires, revoked, serial, filename, subject = line.split("\t", 5)
            entries.append(
                LedgerEntry(
                    status=status,
                    expires=parse_ledger_time(expires),
                    revoked=revoked,
                    serial=serial,
                    filename=filename,
                    subject=subject,
                )
            )
        return entries

    def root_key_is_encrypted(self) -> bool:
        """Check the PEM armour of the root key for passphrase protection."""
        return b"ENCRYPTED" in self.root_key_path.read_bytes()
