"""CA tool configuration dataclasses."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from cryptography import x509
from cryptography.x509 import oid


def _default_home() -> Path:
    return Path.home() / ".ca-tool"


@dataclass
class CAConfig:
    """Tool configuration passed explicitly to every operation."""

    home: Path = field(default_factory=_default_home)
    openssl_bin: str = "openssl"
    key_size: int = 2048
    key_cipher: str | None = None
    ca_validity_days: int = 3650
    cert_validity_days: int = 365
    hash_algorithm: str = "sha256"
    passphrase_env: str = "CA_TOOL_PASSPHRASE"

    @classmethod
    def from_env(cls) -> "CAConfig":
        """Build configuration from defaults overridden by CA_TOOL_* variables."""
        config = cls()
        home = os.environ.get("CA_TOOL_HOME")
        if home:
            config.home = Path(home).expanduser()
        openssl_bin = os.environ.get("CA_TOOL_OPENSSL")
        if openssl_bin:
            config.openssl_bin = openssl_bin
        return config

    def pass_env(self) -> str | None:
        """Return passphrase variable name if it is set in the environment."""
        if self.passphrase_env and self.passphrase_env in os.environ:
            return self.passphrase_env
        return None


@dataclass
class DistinguishedName:
    """X.509 Subject Distinguished Name.

    Only common_name is mandatory; empty fields are left out of the subject.
    """

    common_name: str
    country: str | None = None
    state: str | None = None
    locality: str | None = None
    organization: str | None = None
    organizational_unit: str | None = None

    def _fields(self) -> list[tuple[str, oid.ObjectIdentifier, str]]:
        pairs = [
            ("C", oid.NameOID.COUNTRY_NAME, self.country),
            ("ST", oid.NameOID.STATE_OR_PROVINCE_NAME, self.state),
            ("L", oid.NameOID.LOCALITY_NAME, self.locality),
            ("O", oid.NameOID.ORGANIZATION_NAME, self.organization),
            ("OU", oid.NameOID.ORGANIZATIONAL_UNIT_NAME, self.organizational_unit),
            ("CN", oid.NameOID.COMMON_NAME, self.common_name),
        ]
        return [(short, name_oid, value) for short, name_oid, value in pairs if value]

    def validate(self) -> None:
        """Raise ValueError for values openssl would reject."""
        if not self.common_name:
            raise ValueError("common name must not be empty")
        if self.country is not None and len(self.country) != 2:
            raise ValueError(f"country must be a 2-letter code: {self.country!r}")

    def to_subject(self) -> str:
        """Render subject in openssl -subj syntax (/C=GB/.../CN=name)."""
        parts = []
        for short, _, value in self._fields():
            # "+" would start a multi-valued RDN
            escaped = value.replace("\\", "\\\\").replace("/", "\\/").replace("+", "\\+")
            parts.append(f"/{short}={escaped}")
        return "".join(parts)

    def to_x509_name(self) -> x509.Name:
        """Convert to cryptography x509.Name for comparing issued subjects."""
        return x509.Name(
            [x509.NameAttribute(name_oid, value) for _, name_oid, value in self._fields()]
        )
