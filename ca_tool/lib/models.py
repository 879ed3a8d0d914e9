"""Request and result models for CA tool operations."""

from dataclasses import dataclass, field
from pathlib import Path

from .config import DistinguishedName

SELF_SIGNED = "self"


@dataclass
class IssueRequest:
    """Parsed request for a create-ca or create-cert run."""

    name: str
    kind: str
    dn: DistinguishedName
    signing_ca: str | None = None
    signing_key: Path | None = None
    with_csr: Path | None = None
    combined: bool = False
    client_eku: bool = False
    server_eku: bool = False
    output_dir: Path = field(default_factory=Path)
    overwrite: bool = False

    @property
    def self_signed(self) -> bool:
        return self.signing_ca == SELF_SIGNED

    @property
    def key_path(self) -> Path:
        return self.output_dir / f"{self.name}.key.pem"

    @property
    def cert_path(self) -> Path:
        return self.output_dir / f"{self.name}.cert.pem"

    @property
    def csr_path(self) -> Path:
        return self.output_dir / f"{self.name}.csr"

    @property
    def combined_path(self) -> Path:
        return self.output_dir / f"{self.name}.pem"


@dataclass
class IssueResult:
    """Result from a create-ca or create-cert run.

    Paths of files removed by concatenation are reported as None.
    """

    name: str
    key_path: Path | None
    cert_path: Path | None
    csr_path: Path | None
    combined_path: Path | None
    serial_number: str
    subject: str


@dataclass
class ChainResult:
    """Result from chain bundle creation."""

    chain_path: Path
    certificate_count: int
