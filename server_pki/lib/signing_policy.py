"""Per-certificate signing policy.

The subject's common name is baked into the request section as static text,
so a fresh policy is built for every certificate.
"""

from dataclasses import dataclass
from pathlib import Path

from .config import DistinguishedName, PKIConfig, build_dn_from_config
from .models import CertificateRequest

WILDCARD_PREFIX = "*."


def artifact_name(common_name: str) -> str:
    """Filesystem-safe base name: a leading ``*.`` becomes ``wildcard.``."""
    if common_name.startswith(WILDCARD_PREFIX):
        return "wildcard." + common_name[len(WILDCARD_PREFIX) :]
    return common_name


@dataclass(frozen=True)
class SigningPolicy:
    """Signing policy bound to one common name."""

    request: CertificateRequest
    store_root: Path
    ca_file_name: str
    key_size: int
    comment: str

    @property
    def common_name(self) -> str:
        return self.request.common_name

    @property
    def default_days(self) -> int:
        return self.request.validity_days

    def subject(self) -> DistinguishedName:
        """Distinguished name requested for the leaf certificate."""
        return DistinguishedName(
            common_name=self.request.common_name,
            country=self.request.country,
            state=self.request.state,
            locality=self.request.city,
            organization=self.request.organization,
            email=self.request.contact_email,
        )

    def render(self) -> str:
        """Render the policy as an OpenSSL configuration document."""
        request = self.request
        dn_lines = [f"commonName             = {request.common_name}"]
        for key, value in (
            ("countryName           ", request.country),
            ("stateOrProvinceName   ", request.state),
            ("localityName          ", request.city),
            ("0.organizationName    ", request.organization),
            ("emailAddress          ", request.contact_email),
        ):
            if value:
                dn_lines.append(f"{key} = {value}")
        dn_section = "\n".join(dn_lines)

        return f"""\
HOME                   = .

[ ca ]
default_ca             = CA_default

[ CA_default ]
dir                    = {self.store_root}
certs                  = $dir/certs
crl_dir                = $dir/crl
database               = $dir/index.txt
new_certs_dir          = $dir/newcerts
certificate            = $certs/{self.ca_file_name}.pem
private_key            = $dir/private/{self.ca_file_name}.key
serial                 = $dir/serial
crlnumber              = $dir/crlnumber
crl                    = $dir/crl.pem
x509_extensions        = usr_cert
name_opt               = ca_default
cert_opt               = ca_default
default_days           = {self.default_days}
default_crl_days       = 30
default_md             = default
preserve               = no
policy                 = my_policy
unique_subject         = no

[ my_policy ]
countryName            = optional
stateOrProvinceName    = optional
localityName           = optional
organizationName       = optional
organizationalUnitName = optional
commonName             = supplied
emailAddress           = optional

[ req ]
prompt                 = no
default_bits           = {self.key_size}
distinguished_name     = req_distinguished_name
x509_extensions        = v3_ca
string_mask            = utf8only

[ req_distinguished_name ]
{dn_section}

[ usr_cert ]
basicConstraints       = CA:FALSE
nsCertType             = server, email
nsComment              = "{self.comment}"
subjectKeyIdentifier   = hash
authorityKeyIdentifier = keyid,issuer
extendedKeyUsage       = serverAuth

[ v3_req ]
basicConstraints       = CA:FALSE
keyUsage               = nonRepudiation, digitalSignature, keyEncipherment

[ v3_ca ]
subjectKeyIdentifier   = hash
authorityKeyIdentifier = keyid:always,issuer
basicConstraints       = CA:true

[ crl_ext ]
authorityKeyIdentifier = keyid:always
"""


def build_signing_policy(
    common_name: str, config: PKIConfig, validity_days: int | None = None
) -> SigningPolicy:
    """Build the signing policy for one common name from CA defaults.

    Args:
        common_name: Subject CN, embedded verbatim (wildcards included)
        config: CA defaults
        validity_days: Overrides the configured leaf validity (used for the root)

    Returns:
        SigningPolicy for exactly this common name
    """
    dn = build_dn_from_config(config, common_name)
    request = CertificateRequest(
        common_name=common_name,
        organization=dn.organization,
        country=dn.country,
        state=dn.state,
        city=dn.locality,
        contact_email=dn.email,
        validity_days=validity_days or config.leaf_validity_days,
    )
    return SigningPolicy(
        request=request,
        store_root=config.store_root,
        ca_file_name=config.ca_file_name,
        key_size=config.key_size,
        comment=config.comment,
    )
