#!/usr/bin/env python3
"""Create CA and leaf certificates by driving the openssl command line."""

import argparse
import re
import sys
from dataclasses import replace
from pathlib import Path

from ca_tool.lib.ca_manager import CAManager
from ca_tool.lib.cert_utils import parse_key_cipher
from ca_tool.lib.config import CAConfig, DistinguishedName
from ca_tool.lib.logging_config import LOGGER, set_verbosity
from ca_tool.lib.models import SELF_SIGNED, IssueRequest
from ca_tool.lib.openssl_runner import OpenSSLCommandError

HASH_PATTERN = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {value!r}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {value}")
    return number


def _key_cipher(value: str) -> str:
    try:
        parse_key_cipher(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None
    return value


def _hash_name(value: str) -> str:
    if not HASH_PATTERN.match(value):
        raise argparse.ArgumentTypeError(f"invalid hash algorithm: {value!r}")
    return value


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="ca-tool",
        description="Create root/intermediate CAs and leaf certificates with openssl",
    )

    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument("--create-ca", metavar="NAME", help="Create a CA named NAME")
    action.add_argument("--create-cert", metavar="NAME", help="Create a certificate named NAME")

    signing = parser.add_argument_group("signing")
    signing.add_argument(
        "--signing-ca",
        metavar="PATH|self",
        help="Issuer certificate, or 'self' to self-sign (default for --create-ca: self)",
    )
    signing.add_argument("--signing-key", type=Path, metavar="PATH", help="Issuer private key")
    signing.add_argument(
        "--with-csr",
        type=Path,
        metavar="PATH",
        help="Sign an existing CSR instead of generating a key (--create-cert only)",
    )
    signing.add_argument(
        "--combined",
        action="store_true",
        help="Write certificate and key into NAME.pem and remove the separate files",
    )

    keys = parser.add_argument_group("key and certificate")
    keys.add_argument("--key-length", type=_positive_int, metavar="N", help="RSA key length in bits")
    keys.add_argument(
        "--key-cipher",
        type=_key_cipher,
        metavar="des|des3|idea|ec:CURVE",
        help="Encrypt the RSA key with a cipher, or generate an EC key on CURVE",
    )
    keys.add_argument("--days-valid", type=_positive_int, metavar="N", help="Validity in days")
    keys.add_argument("--hash", type=_hash_name, metavar="ALGO", help="Message digest (default: sha256)")
    keys.add_argument("--client-eku", action="store_true", help="Add clientAuth extended key usage")
    keys.add_argument("--server-eku", action="store_true", help="Add serverAuth extended key usage")

    dn = parser.add_argument_group("subject")
    dn.add_argument("--country", help="Country (2 letter code)")
    dn.add_argument("--state", help="State or province")
    dn.add_argument("--locality", help="Locality")
    dn.add_argument("--organization", help="Organization")
    dn.add_argument("--organizational-unit", help="Organizational unit")
    dn.add_argument("--common-name", help="Common name (default: NAME)")

    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("."),
        help="Directory for generated files (default: current directory)",
    )
    parser.add_argument("--home", type=Path, help="CA state directory (default: $CA_TOOL_HOME or ~/.ca-tool)")
    parser.add_argument("--force", action="store_true", help="Replace existing output files")

    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("--quiet", action="store_true", help="Only log warnings and errors")
    verbosity.add_argument("--verbose", action="store_true", help="Log every openssl command")

    return parser


def validate_args(parser: argparse.ArgumentParser, args: argparse.Namespace) -> None:
    """Reject flag combinations that cannot work; exits with status 2."""
    if args.create_cert and args.signing_ca is None:
        parser.error("--create-cert requires --signing-ca=PATH|self")
    if args.with_csr is not None and not args.create_cert:
        parser.error("--with-csr is only valid with --create-cert")
    if args.with_csr is not None and args.combined:
        parser.error("--combined cannot be used with --with-csr")

    signing_ca = args.signing_ca or SELF_SIGNED
    if signing_ca == SELF_SIGNED and args.signing_key is not None:
        parser.error("--signing-key cannot be used with a self-signed certificate")
    if signing_ca != SELF_SIGNED and args.signing_key is None:
        parser.error("--signing-ca=PATH requires --signing-key")
    if args.with_csr is not None and signing_ca == SELF_SIGNED:
        parser.error("--with-csr requires --signing-ca=PATH")
    if args.country is not None and len(args.country) != 2:
        parser.error("--country must be a 2 letter code")


def build_config(args: argparse.Namespace) -> CAConfig:
    """Layer command line overrides on top of environment configuration."""
    config = CAConfig.from_env()
    overrides = {}
    if args.home is not None:
        overrides["home"] = args.home.expanduser()
    if args.key_length is not None:
        overrides["key_size"] = args.key_length
    if args.key_cipher is not None:
        overrides["key_cipher"] = args.key_cipher
    if args.hash is not None:
        overrides["hash_algorithm"] = args.hash
    if args.days_valid is not None:
        overrides["ca_validity_days"] = args.days_valid
        overrides["cert_validity_days"] = args.days_valid
    return replace(config, **overrides)


def build_request(args: argparse.Namespace) -> IssueRequest:
    """Turn parsed arguments into an IssueRequest."""
    name = args.create_ca or args.create_cert
    dn = DistinguishedName(
        common_name=args.common_name or name,
        country=args.country,
        state=args.state,
        locality=args.locality,
        organization=args.organization,
        organizational_unit=args.organizational_unit,
    )
    return IssueRequest(
        name=name,
        kind="ca" if args.create_ca else "cert",
        dn=dn,
        signing_ca=args.signing_ca or SELF_SIGNED,
        signing_key=args.signing_key,
        with_csr=args.with_csr,
        combined=args.combined,
        client_eku=args.client_eku,
        server_eku=args.server_eku,
        output_dir=args.output_dir,
        overwrite=args.force,
    )


def main(argv: list[str] | None = None) -> int:
    """Create a CA or a certificate.

    Returns:
        Exit code (0 for success, 1 for failure; usage errors exit with 2)
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    validate_args(parser, args)
    set_verbosity(quiet=args.quiet, verbose=args.verbose)

    try:
        config = build_config(args)
        request = build_request(args)
        ca_manager = CAManager(config)

        if request.kind == "ca":
            LOGGER.info("Creating CA: %s", request.name)
            result = ca_manager.create_ca(request)
        else:
            LOGGER.info("Creating certificate: %s", request.name)
            result = ca_manager.create_cert(request)

        if result.combined_path is not None:
            LOGGER.info("  Combined: %s", result.combined_path)
        else:
            if result.key_path is not None:
                LOGGER.info("  Key: %s", result.key_path)
            LOGGER.info("  Cert: %s", result.cert_path)
        if result.csr_path is not None:
            LOGGER.info("  CSR: %s", result.csr_path)
        LOGGER.info("  Serial: %s", result.serial_number)
        LOGGER.info("  Subject: %s", result.subject)
        return 0

    except FileNotFoundError as e:
        LOGGER.error("Input file not found: %s", e)
        return 1
    except OpenSSLCommandError as e:
        LOGGER.error("openssl failed: %s", e)
        return 1
    except Exception as e:
        LOGGER.error("Certificate creation failed: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
