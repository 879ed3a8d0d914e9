"""CA manager for certificate authority operations."""

from pathlib import Path

from .ca_state import CAState
from .cert_utils import (
    certificate_subject,
    concatenate_files,
    create_chain_bundle,
    deserialize_certificate,
    deserialize_csr,
    get_certificate_serial_hex,
    is_ca_certificate,
    key_needs_legacy_provider,
    parse_key_cipher,
    validate_certificate_chain,
    validate_csr_signature,
)
from .certificate_builder import ROOT_CA_EXTENSIONS, CertificateBuilder, leaf_extensions
from .config import CAConfig
from .logging_config import LOGGER
from .models import ChainResult, IssueRequest, IssueResult
from .openssl_runner import OpenSSLRunner


def _check_readable(path: Path, label: str) -> bytes:
    if not path.is_file():
        raise FileNotFoundError(f"{label} not found: {path}")
    try:
        return path.read_bytes()
    except OSError as e:
        raise FileNotFoundError(f"{label} not readable: {path} ({e.strerror})") from e


class CAManager:
    """Certificate Authority manager driving openssl for every crypto step."""

    def __init__(self, config: CAConfig, runner: OpenSSLRunner | None = None) -> None:
        """Initialize CA manager with configuration.

        Args:
            config: Tool configuration (state home, key and validity defaults)
            runner: openssl runner, defaults to one using config.openssl_bin
        """
        self.config = config
        self.runner = runner or OpenSSLRunner(config.openssl_bin)
        self.state = CAState(config, self.runner)

    def preflight(self, request: IssueRequest) -> None:
        """Check every input before any file is written.

        Raises:
            FileNotFoundError: If a signing CA, signing key or CSR is missing or unreadable
            ValueError: If an input is malformed or an output would be clobbered
        """
        request.dn.validate()
        parse_key_cipher(self.config.key_cipher)
        if self.config.key_size <= 0:
            raise ValueError(f"key length must be positive: {self.config.key_size}")

        if request.signing_ca is None:
            raise ValueError("a signing CA (path or 'self') is required")

        if not request.self_signed:
            ca_pem = _check_readable(Path(request.signing_ca), "signing CA")
            try:
                ca_cert = deserialize_certificate(ca_pem)
            except ValueError as e:
                raise ValueError(f"signing CA is not a PEM certificate: {request.signing_ca}") from e
            if not is_ca_certificate(ca_cert):
                raise ValueError(f"signing CA lacks CA:true basic constraint: {request.signing_ca}")
            if request.signing_key is None:
                raise ValueError("a signing key is required with a signing CA")
            _check_readable(request.signing_key, "signing key")
        elif request.signing_key is not None:
            raise ValueError("a signing key cannot be combined with a self-signed certificate")

        if request.with_csr is not None:
            if request.kind != "cert":
                raise ValueError("a CSR can only be supplied when creating a certificate")
            if request.combined:
                raise ValueError("a combined file needs a generated key; drop --with-csr")
            if request.self_signed:
                raise ValueError("a supplied CSR cannot be self-signed")
            csr_pem = _check_readable(request.with_csr, "certificate signing request")
            try:
                csr = deserialize_csr(csr_pem)
            except ValueError as e:
                raise ValueError(f"not a PEM certificate signing request: {request.with_csr}") from e
            if not validate_csr_signature(csr):
                raise ValueError(f"CSR signature validation failed: {request.with_csr}")

        if not request.overwrite:
            for path in self._outputs(request):
                if path.exists():
                    raise ValueError(f"output already exists (use --force to replace): {path}")

    def _outputs(self, request: IssueRequest) -> list[Path]:
        if request.with_csr is not None:
            return [request.cert_path]
        outputs = [request.key_path, request.cert_path, request.csr_path]
        if request.combined:
            outputs.append(request.combined_path)
        return outputs

    def _new_key_is_legacy(self) -> bool:
        return parse_key_cipher(self.config.key_cipher).needs_legacy_provider

    def _signing_key_is_legacy(self, request: IssueRequest) -> bool:
        return key_needs_legacy_provider(request.signing_key.read_bytes())

    def generate_key(self, key_path: Path) -> Path:
        """Generate a private key at key_path."""
        key_spec = parse_key_cipher(self.config.key_cipher)
        LOGGER.info("Generating %s private key: %s", key_spec.algorithm, key_path)
        self.runner.run(
            CertificateBuilder.generate_key(
                key_path, self.config.key_size, key_spec, self.config.pass_env()
            )
        )
        key_path.chmod(0o600)
        return key_path

    def generate_csr(self, request: IssueRequest) -> Path:
        """Generate a CSR for request.dn over the request's key."""
        LOGGER.info("Generating CSR for %s: %s", request.dn.common_name, request.csr_path)
        self.runner.run(
            CertificateBuilder.generate_csr(
                self.state.config_path,
                request.key_path,
                request.csr_path,
                request.dn,
                self.config.hash_algorithm,
                self.config.pass_env(),
                legacy_provider=self._new_key_is_legacy(),
            )
        )
        return request.csr_path

    def _self_sign(self, request: IssueRequest, csr_path: Path, days: int, extensions: str) -> None:
        LOGGER.info("Self-signing %s (%s)", request.cert_path, extensions)
        self.runner.run(
            CertificateBuilder.generate_root_ca_cert(
                self.state.config_path,
                request.key_path,
                csr_path,
                request.cert_path,
                days,
                self.config.hash_algorithm,
                self.config.pass_env(),
                extensions=extensions,
                legacy_provider=self._new_key_is_legacy(),
            )
        )

    def _sign(self, request: IssueRequest, csr_path: Path, days: int, extensions: str) -> None:
        LOGGER.info("Signing %s with %s (%s)", request.cert_path, request.signing_ca, extensions)
        self.runner.run(
            CertificateBuilder.sign_csr(
                self.state.config_path,
                Path(request.signing_ca),
                request.signing_key,
                csr_path,
                request.cert_path,
                days,
                self.config.hash_algorithm,
                extensions=extensions,
                pass_env=self.config.pass_env(),
                legacy_provider=self._signing_key_is_legacy(request),
            )
        )

    def create_ca(self, request: IssueRequest) -> IssueResult:
        """Create a root CA (self-signed) or an intermediate CA signed by request.signing_ca.

        Generates:
            - CA private key
            - CSR with the request DN
            - CA certificate with v3_ca or v3_intermediate_ca extensions

        Args:
            request: Parsed create-ca request

        Returns:
            IssueResult with file paths, serial and subject
        """
        self.preflight(request)
        self.state.ensure()
        request.output_dir.mkdir(parents=True, exist_ok=True)

        days = self.config.ca_validity_days
        self.generate_key(request.key_path)
        csr_path = self.generate_csr(request)

        if request.self_signed:
            self._self_sign(request, csr_path, days, ROOT_CA_EXTENSIONS)
        else:
            LOGGER.info("Signing intermediate CA %s with %s", request.cert_path, request.signing_ca)
            self.runner.run(
                CertificateBuilder.sign_ca_csr(
                    self.state.config_path,
                    Path(request.signing_ca),
                    request.signing_key,
                    csr_path,
                    request.cert_path,
                    days,
                    self.config.hash_algorithm,
                    self.config.pass_env(),
                    legacy_provider=self._signing_key_is_legacy(request),
                )
            )

        return self._finish(request, request.key_path, csr_path)

    def create_cert(self, request: IssueRequest) -> IssueResult:
        """Create a leaf certificate, from a generated key or a supplied CSR.

        Args:
            request: Parsed create-cert request

        Returns:
            IssueResult with file paths, serial and subject
        """
        self.preflight(request)
        self.state.ensure()
        request.output_dir.mkdir(parents=True, exist_ok=True)

        days = self.config.cert_validity_days
        extensions = leaf_extensions(request.client_eku, request.server_eku)

        if request.with_csr is not None:
            self._sign(request, request.with_csr, days, extensions)
            return self._finish(request, None, None)

        self.generate_key(request.key_path)
        csr_path = self.generate_csr(request)
        if request.self_signed:
            self._self_sign(request, csr_path, days, extensions)
        else:
            self._sign(request, csr_path, days, extensions)

        return self._finish(request, request.key_path, csr_path)

    def _finish(
        self, request: IssueRequest, key_path: Path | None, csr_path: Path | None
    ) -> IssueResult:
        cert = deserialize_certificate(request.cert_path.read_bytes())
        serial_number = get_certificate_serial_hex(cert)
        subject = certificate_subject(cert)
        LOGGER.info("Issued %s serial=%s subject=%s", request.cert_path, serial_number, subject)

        cert_path: Path | None = request.cert_path
        combined_path = None
        if request.combined and key_path is not None:
            combined_path = concatenate_files(request.cert_path, key_path, request.combined_path)
            LOGGER.info("Combined certificate and key: %s", combined_path)
            cert_path = None
            key_path = None

        return IssueResult(
            name=request.name,
            key_path=key_path,
            cert_path=cert_path,
            csr_path=csr_path,
            combined_path=combined_path,
            serial_number=serial_number,
            subject=subject,
        )

    def create_chain(self, cert_paths: list[Path], output_path: Path) -> ChainResult:
        """Bundle certificates leaf-first after checking each is issued by the next.

        Args:
            cert_paths: Certificate PEM files, leaf first, root last
            output_path: Output path for the chain bundle

        Returns:
            ChainResult with the bundle path and certificate count

        Raises:
            FileNotFoundError: If a certificate file is missing
            ValueError: If the certificates do not form an issuance chain
        """
        if not cert_paths:
            raise ValueError("at least one certificate is required")

        pems = [_check_readable(path, "certificate") for path in cert_paths]
        certs = [deserialize_certificate(pem) for pem in pems]
        if not validate_certificate_chain(certs):
            raise ValueError("certificates are not in issuance order (leaf first, root last)")

        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_bytes(create_chain_bundle(pems))

        return ChainResult(chain_path=output_path, certificate_count=len(certs))
