"""CA state directory: openssl.cnf, serial counter, index ledger, and seed file."""

import string
from pathlib import Path

from .certificate_builder import CertificateBuilder
from .config import CAConfig
from .logging_config import LOGGER
from .openssl_runner import OpenSSLRunner

INITIAL_SERIAL = "01"

OPENSSL_CONFIG_TEMPLATE = string.Template(
    """\
# Generated by ca-tool. Edits are preserved; delete this file to regenerate.
HOME = .

[ ca ]
default_ca = CA_default

[ CA_default ]
dir = $home
database = $$dir/index.txt
serial = $$dir/serial
new_certs_dir = $$dir/newcerts
RANDFILE = $$dir/.rand
default_md = $hash_algorithm
default_days = $cert_validity_days
policy = policy_anything
unique_subject = no
email_in_dn = no
copy_extensions = none
preserve = no
name_opt = ca_default
cert_opt = ca_default

[ policy_anything ]
countryName = optional
stateOrProvinceName = optional
localityName = optional
organizationName = optional
organizationalUnitName = optional
commonName = supplied
emailAddress = optional

[ req ]
default_bits = $key_size
default_md = $hash_algorithm
distinguished_name = req_distinguished_name
string_mask = utf8only

[ req_distinguished_name ]
countryName = Country Name (2 letter code)
stateOrProvinceName = State or Province Name
localityName = Locality Name
organizationName = Organization Name
organizationalUnitName = Organizational Unit Name
commonName = Common Name

[ v3_ca ]
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid:always,issuer
basicConstraints = critical, CA:true
keyUsage = critical, digitalSignature, cRLSign, keyCertSign

[ v3_intermediate_ca ]
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid:always,issuer
basicConstraints = critical, CA:true, pathlen:0
keyUsage = critical, digitalSignature, cRLSign, keyCertSign

[ usr_cert ]
basicConstraints = CA:FALSE
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid,issuer
keyUsage = critical, digitalSignature, keyEncipherment

[ server_cert ]
basicConstraints = CA:FALSE
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid,issuer
keyUsage = critical, digitalSignature, keyEncipherment
extendedKeyUsage = serverAuth

[ client_cert ]
basicConstraints = CA:FALSE
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid,issuer
keyUsage = critical, digitalSignature, keyEncipherment
extendedKeyUsage = clientAuth

[ client_server_cert ]
basicConstraints = CA:FALSE
subjectKeyIdentifier = hash
authorityKeyIdentifier = keyid,issuer
keyUsage = critical, digitalSignature, keyEncipherment
extendedKeyUsage = serverAuth, clientAuth
"""
)


def render_openssl_config(config: CAConfig) -> str:
    """Render openssl.cnf for the configured state directory."""
    return OPENSSL_CONFIG_TEMPLATE.substitute(
        home=config.home.resolve(),
        hash_algorithm=config.hash_algorithm,
        cert_validity_days=config.cert_validity_days,
        key_size=config.key_size,
    )


class CAState:
    """Administrative files openssl ca needs under the configured home."""

    def __init__(self, config: CAConfig, runner: OpenSSLRunner) -> None:
        self.config = config
        self.runner = runner
        self.home = config.home

    @property
    def config_path(self) -> Path:
        return self.home / "openssl.cnf"

    @property
    def serial_path(self) -> Path:
        return self.home / "serial"

    @property
    def index_path(self) -> Path:
        return self.home / "index.txt"

    @property
    def rand_path(self) -> Path:
        return self.home / ".rand"

    @property
    def new_certs_dir(self) -> Path:
        return self.home / "newcerts"

    def ensure(self) -> None:
        """Create any missing state file and check the existing ones.

        The serial counter and index are never overwritten once present.

        Raises:
            ValueError: If the serial file holds something other than hex
            OpenSSLCommandError: If seeding the randomness file fails
        """
        self.home.mkdir(parents=True, exist_ok=True)
        self.new_certs_dir.mkdir(exist_ok=True)

        if not self.config_path.exists():
            self.config_path.write_text(render_openssl_config(self.config))
            LOGGER.info("Wrote openssl config: %s", self.config_path)

        if self.serial_path.exists():
            self.read_serial()
        else:
            self.serial_path.write_text(INITIAL_SERIAL + "\n")
            LOGGER.debug("Initialised serial file: %s", self.serial_path)

        if not self.index_path.exists():
            self.index_path.touch()
            LOGGER.debug("Initialised index file: %s", self.index_path)

        if not self.rand_path.exists() or self.rand_path.stat().st_size < self.config.key_size:
            self.runner.run(CertificateBuilder.generate_rand(self.rand_path, self.config.key_size))
            self.rand_path.chmod(0o600)
            LOGGER.debug("Seeded randomness file: %s", self.rand_path)

    def read_serial(self) -> int:
        """Return the next serial number openssl will assign.

        Raises:
            ValueError: If the serial file is empty or not hex
        """
        text = self.serial_path.read_text().strip()
        try:
            return int(text, 16)
        except ValueError:
            raise ValueError(f"serial file is not a hex number: {self.serial_path}") from None
