"""Engine configuration, remote target and settings-file loading."""

import getpass
import io
import re
from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid
from dotenv import dotenv_values

from .exceptions import ConfigError


def _default_store_root() -> Path:
    return Path("/media") / getpass.getuser() / "CA" / "ca"


@dataclass(frozen=True)
class PKIConfig:
    """Immutable CA configuration passed into the engine at construction."""

    store_root: Path = field(default_factory=_default_store_root)
    ca_file_name: str = "my-own-root-certificate"
    ca_common_name: str = "Server Root CA"
    server_fqdn: str = "localhost"
    organization: str = ""
    country: str = ""
    state: str = ""
    locality: str = ""
    leaf_validity_days: int = 3650
    root_validity_days: int = 3650
    key_size: int = 2048
    first_serial: str = "01"
    work_dir: Path = Path(".")
    installed_certs_dir: Path = Path("/etc/ssl/certs")
    installed_keys_dir: Path = Path("/etc/ssl/private")
    privileged_owner: str | None = "root"
    comment: str = "Generated by server-pki"

    @property
    def contact_email(self) -> str:
        """Contact address derived from the server's domain."""
        return f"ca@{self.server_fqdn}"


@dataclass(frozen=True)
class RemoteTarget:
    """Destination for secure delivery of signed artifacts."""

    host: str
    principal: str

    @property
    def destination(self) -> str:
        return f"{self.principal}@{self.host}"


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name.

    Only common_name is required; empty optional fields are left out of the
    encoded name.
    """

    common_name: str
    country: str = ""
    state: str = ""
    locality: str = ""
    organization: str = ""
    email: str = ""

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for certificate generation."""
        attributes = [x509.NameAttribute(oid.NameOID.COMMON_NAME, self.common_name)]
        optional = [
            (oid.NameOID.COUNTRY_NAME, self.country),
            (oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
            (oid.NameOID.LOCALITY_NAME, self.locality),
            (oid.NameOID.ORGANIZATION_NAME, self.organization),
            (oid.NameOID.EMAIL_ADDRESS, self.email),
        ]
        attributes.extend(x509.NameAttribute(o, v) for o, v in optional if v)
        return x509.Name(attributes)


def build_dn_from_config(config: PKIConfig, common_name: str) -> DistinguishedName:
    """Build DN from PKIConfig fields + common_name."""
    return DistinguishedName(
        common_name=common_name,
        country=config.country,
        state=config.state,
        locality=config.locality,
        organization=config.organization,
        email=config.contact_email,
    )


@dataclass(frozen=True)
class RunSettings:
    """Everything a batch run needs, as loaded from the settings file."""

    config: PKIConfig
    target: RemoteTarget
    common_names: tuple[str, ...]


CONFIG_TEMPLATE = """\
# Settings for server-pki. All fields need to be filled.

# Directory of the certificate authority (e.g. on a removable drive)
CA_DIR=
# File name of the CA's root certificate, without path and extension
CA_FILE_NAME=my-own-root-certificate

# Domain of the server; the server's FQDN is DOMAIN.TLD
DOMAIN=
TLD=
# Space- or comma-separated subdomains that get their own certificate
SUBDOMAINS=mail

# Account on the server that receives the certificates
ADMIN_USER=

CERT_ORG=
CERT_COUNTRY=
CERT_STATE=
CERT_CITY=
# certificates are valid for 10 years by default
CERT_DAYS=3650
"""

TEMPLATE_KEYS = tuple(dotenv_values(stream=io.StringIO(CONFIG_TEMPLATE)))


def write_config_template(path: Path) -> Path:
    """Write the settings template for the operator to fill in."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(CONFIG_TEMPLATE)
    return path


def load_settings(path: Path, write_template: bool = True, **overrides) -> RunSettings:
    """Load run settings from a KEY=VALUE settings file.

    Every key present in the template must be assigned. When the file does
    not exist a template is written in its place first, unless the caller
    only reads (write_template=False).

    Args:
        path: Settings file location
        write_template: Write the template when the file is missing
        **overrides: PKIConfig fields that take precedence over derived values

    Returns:
        RunSettings with config, remote target and the default batch of names

    Raises:
        ConfigError: If the file is missing or a setting is empty
    """
    if not path.exists():
        if not write_template:
            raise ConfigError(f"no settings file found at {path}")
        write_config_template(path)
        raise ConfigError(
            f"no settings file found; a template was written to {path}, "
            "edit it before running again"
        )

    values = {
        key: (value or "").strip()
        for key, value in dotenv_values(path, interpolate=False).items()
    }
    missing = [key for key in TEMPLATE_KEYS if not values.get(key)]
    if missing:
        raise ConfigError(f"settings not assigned in {path}: {', '.join(missing)}")

    try:
        days = int(values["CERT_DAYS"])
    except ValueError as e:
        raise ConfigError(f"CERT_DAYS must be an integer, got {values['CERT_DAYS']!r}") from e

    server_fqdn = f"{values['DOMAIN']}.{values['TLD']}"
    subdomains = [s for s in re.split(r"[\s,]+", values["SUBDOMAINS"]) if s]

    config_kwargs = {
        "store_root": Path(values["CA_DIR"]).expanduser(),
        "ca_file_name": values["CA_FILE_NAME"],
        "ca_common_name": f"{values['CERT_ORG']} Root CA",
        "server_fqdn": server_fqdn,
        "organization": values["CERT_ORG"],
        "country": values["CERT_COUNTRY"],
        "state": values["CERT_STATE"],
        "locality": values["CERT_CITY"],
        "leaf_validity_days": days,
    }
    config_kwargs.update(overrides)

    common_names = (
        f"*.{server_fqdn}",
        server_fqdn,
        *(f"{sub}.{server_fqdn}" for sub in subdomains),
    )

    return RunSettings(
        config=PKIConfig(**config_kwargs),
        target=RemoteTarget(host=server_fqdn, principal=values["ADMIN_USER"]),
        common_names=common_names,
    )
