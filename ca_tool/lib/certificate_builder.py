"""Command line builder for openssl key, CSR, and certificate operations."""

from pathlib import Path

from .cert_utils import KeySpec
from .config import DistinguishedName

ROOT_CA_EXTENSIONS = "v3_ca"
INTERMEDIATE_CA_EXTENSIONS = "v3_intermediate_ca"


def leaf_extensions(client_eku: bool, server_eku: bool) -> str:
    """Pick the leaf extension section matching the requested EKUs."""
    if client_eku and server_eku:
        return "client_server_cert"
    if client_eku:
        return "client_cert"
    if server_eku:
        return "server_cert"
    return "usr_cert"


LEGACY_PROVIDER_ARGS = ["-provider", "legacy", "-provider", "default"]


def _key_options(pass_env: str | None, legacy_provider: bool = False) -> list[str]:
    args = ["-passin", f"env:{pass_env}"] if pass_env else []
    if legacy_provider:
        args += LEGACY_PROVIDER_ARGS
    return args


class CertificateBuilder:
    """Builds openssl argument lists for the CA hierarchy and leaf certificates.

    Every method returns the arguments that follow the openssl executable;
    nothing is executed here.
    """

    @staticmethod
    def generate_key(
        key_path: Path,
        key_size: int,
        key_spec: KeySpec,
        pass_env: str | None = None,
    ) -> list[str]:
        """Build genpkey arguments for an RSA or EC private key.

        Args:
            key_path: Output path for the PEM private key
            key_size: RSA modulus size in bits (ignored for EC keys)
            key_spec: Algorithm, curve and optional cipher
            pass_env: Environment variable holding the key passphrase

        Returns:
            openssl genpkey arguments
        """
        args = ["genpkey"]
        if key_spec.algorithm == "EC":
            args += [
                "-algorithm",
                "EC",
                "-pkeyopt",
                f"ec_paramgen_curve:{key_spec.curve}",
                "-pkeyopt",
                "ec_param_enc:named_curve",
            ]
        else:
            args += ["-algorithm", "RSA", "-pkeyopt", f"rsa_keygen_bits:{key_size}"]

        if key_spec.cipher:
            if key_spec.needs_legacy_provider:
                args += LEGACY_PROVIDER_ARGS
            args.append(f"-{key_spec.cipher}")
            if pass_env:
                args += ["-pass", f"env:{pass_env}"]

        args += ["-out", str(key_path)]
        return args

    @staticmethod
    def generate_csr(
        config_path: Path,
        key_path: Path,
        csr_path: Path,
        subject_dn: DistinguishedName,
        hash_algorithm: str,
        pass_env: str | None = None,
        legacy_provider: bool = False,
    ) -> list[str]:
        """Build req arguments for a CSR over an existing key."""
        return [
            "req",
            "-new",
            "-config",
            str(config_path),
            "-key",
            str(key_path),
            "-subj",
            subject_dn.to_subject(),
            f"-{hash_algorithm}",
            *_key_options(pass_env, legacy_provider),
            "-out",
            str(csr_path),
        ]

    @staticmethod
    def _ca_args(
        config_path: Path,
        csr_path: Path,
        cert_path: Path,
        validity_days: int,
        hash_algorithm: str,
        extensions: str,
    ) -> list[str]:
        return [
            "ca",
            "-batch",
            "-notext",
            "-config",
            str(config_path),
            "-in",
            str(csr_path),
            "-out",
            str(cert_path),
            "-days",
            str(validity_days),
            "-md",
            hash_algorithm,
            "-extensions",
            extensions,
        ]

    @staticmethod
    def generate_root_ca_cert(
        config_path: Path,
        key_path: Path,
        csr_path: Path,
        cert_path: Path,
        validity_days: int,
        hash_algorithm: str,
        pass_env: str | None = None,
        extensions: str = ROOT_CA_EXTENSIONS,
        legacy_provider: bool = False,
    ) -> list[str]:
        """Build ca -selfsign arguments.

        Self-signing goes through `openssl ca` rather than `req -x509` so the
        serial counter and index record the root like any other issuance.
        """
        args = CertificateBuilder._ca_args(
            config_path, csr_path, cert_path, validity_days, hash_algorithm, extensions
        )
        return args + [
            "-selfsign",
            "-keyfile",
            str(key_path),
            *_key_options(pass_env, legacy_provider),
        ]

    @staticmethod
    def sign_ca_csr(
        config_path: Path,
        signing_ca: Path,
        signing_key: Path,
        csr_path: Path,
        cert_path: Path,
        validity_days: int,
        hash_algorithm: str,
        pass_env: str | None = None,
        legacy_provider: bool = False,
    ) -> list[str]:
        """Build ca arguments issuing an intermediate CA (pathlen:0)."""
        return CertificateBuilder.sign_csr(
            config_path,
            signing_ca,
            signing_key,
            csr_path,
            cert_path,
            validity_days,
            hash_algorithm,
            extensions=INTERMEDIATE_CA_EXTENSIONS,
            pass_env=pass_env,
            legacy_provider=legacy_provider,
        )

    @staticmethod
    def sign_csr(
        config_path: Path,
        signing_ca: Path,
        signing_key: Path,
        csr_path: Path,
        cert_path: Path,
        validity_days: int,
        hash_algorithm: str,
        extensions: str = "usr_cert",
        pass_env: str | None = None,
        legacy_provider: bool = False,
    ) -> list[str]:
        """Build ca arguments issuing a certificate signed by an existing CA.

        Args:
            config_path: openssl.cnf in the state directory
            signing_ca: Issuer certificate PEM
            signing_key: Issuer private key PEM
            csr_path: Request to sign
            cert_path: Output certificate path
            validity_days: Certificate validity period in days
            hash_algorithm: Message digest name (e.g. sha256)
            extensions: Extension section from openssl.cnf
            pass_env: Environment variable holding the issuer key passphrase
            legacy_provider: Load the legacy provider to read a des/idea encrypted key

        Returns:
            openssl ca arguments
        """
        args = CertificateBuilder._ca_args(
            config_path, csr_path, cert_path, validity_days, hash_algorithm, extensions
        )
        return args + [
            "-cert",
            str(signing_ca),
            "-keyfile",
            str(signing_key),
            *_key_options(pass_env, legacy_provider),
        ]

    @staticmethod
    def generate_rand(rand_path: Path, nbytes: int) -> list[str]:
        """Build rand arguments writing a seed file of nbytes."""
        return ["rand", "-out", str(rand_path), str(nbytes)]
