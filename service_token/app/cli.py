"""
Command line for generating keys and issuing or verifying identity tokens.

Keys and claim defaults come from the ``UNIAUTH_*`` settings (environment or
``.env``); ``--private-key-file``/``--public-key-file`` override them.

Exit status: 0 success, 1 invalid token or bad input, 2 expired token,
3 key or configuration error.
"""

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from shared.config import ServiceConfig, get_config
from shared.errors import (
    ConfigurationError,
    InvalidKeyMaterialError,
    MissingArgumentError,
    TokenExpiredError,
    UniauthException,
    VerifierCreationError,
)
from shared.logging import configure_logging, get_logger, get_request_id, set_request_id
from .keys.loader import generate_key_pair, load_public_key, read_key_file, resolve_key
from .tokens.security import TokenSecurity
from .tokens.verifier import TokenVerifier

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_EXPIRED = 2
EXIT_CONFIG = 3

logger = get_logger("token.cli")

KEY_ARGUMENTS = ("private_key", "public_key")


def _exit_code(error: UniauthException) -> int:
    if isinstance(error, TokenExpiredError):
        return EXIT_EXPIRED
    if isinstance(error, (ConfigurationError, InvalidKeyMaterialError, VerifierCreationError)):
        return EXIT_CONFIG
    if isinstance(error, MissingArgumentError) and error.argument in KEY_ARGUMENTS:
        return EXIT_CONFIG
    return EXIT_INVALID


def _print_error(error: UniauthException) -> None:
    response = error.to_response(request_id=get_request_id())
    print(response.model_dump_json(), file=sys.stderr)


def _key_override(path: Optional[Path]) -> Optional[str]:
    return read_key_file(path) if path is not None else None


def cmd_keygen(args: argparse.Namespace, config: ServiceConfig) -> int:
    out_dir: Path = args.out_dir
    private_path = out_dir / "private.pem"
    public_path = out_dir / "public.pem"

    if not args.force and (private_path.exists() or public_path.exists()):
        print(f"Refusing to overwrite keys in {out_dir} (use --force)", file=sys.stderr)
        return EXIT_CONFIG

    private_pem, public_pem = generate_key_pair(args.bits)
    out_dir.mkdir(parents=True, exist_ok=True)
    # Owner-only from creation; fchmod also covers a pre-existing file under --force
    fd = os.open(private_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w") as f:
        f.write(private_pem)
    public_path.write_text(public_pem)

    logger.info("Key pair generated", out_dir=str(out_dir), bits=args.bits)
    print(json.dumps({"private_key": str(private_path), "public_key": str(public_path)}, indent=2))
    return EXIT_OK


def cmd_issue(args: argparse.Namespace, config: ServiceConfig) -> int:
    security = TokenSecurity.from_config(
        config,
        private_key=_key_override(args.private_key_file),
        public_key=_key_override(args.public_key_file),
    )
    bundle = security.new_bundle(
        subject=args.subject,
        identity=args.identity or args.subject,
        tenancy_id=args.tenancy_id,
        audience=args.audience or config.jwt_audience,
        ttl_seconds=args.ttl,
    )
    print(security.create_token(bundle))
    return EXIT_OK


def cmd_verify(args: argparse.Namespace, config: ServiceConfig) -> int:
    _, public_source = config.key_sources()
    public_key = _key_override(args.public_key_file) or resolve_key(public_source)

    verifier = TokenVerifier(
        load_public_key(public_key),
        leeway=config.jwt_leeway_seconds,
        expected_issuer=args.issuer,
        expected_audience=args.audience,
    )
    bundle = verifier.verify(args.token)
    print(bundle.model_dump_json(indent=2))
    return EXIT_OK


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="uniauth-token", description="Issue and verify uniauth identity tokens.")
    parser.add_argument("--private-key-file", type=Path, default=None, help="PEM private key (overrides UNIAUTH_JWT_PRIVATE_KEY)")
    parser.add_argument("--public-key-file", type=Path, default=None, help="PEM public key (overrides UNIAUTH_JWT_PUBLIC_KEY)")
    subparsers = parser.add_subparsers(dest="command", required=True)

    keygen = subparsers.add_parser("keygen", help="Generate an RSA key pair")
    keygen.add_argument("--out-dir", type=Path, default=Path("."), help="Directory for private.pem and public.pem")
    keygen.add_argument("--bits", type=int, default=2048, help="RSA modulus size")
    keygen.add_argument("--force", action="store_true", help="Overwrite existing key files")
    keygen.set_defaults(handler=cmd_keygen)

    issue = subparsers.add_parser("issue", help="Issue a signed token")
    issue.add_argument("--subject", required=True, help="Subject (user id)")
    issue.add_argument("--identity", default=None, help="Identity claim (defaults to the subject)")
    issue.add_argument("--audience", default=None, help="Audience (defaults to UNIAUTH_JWT_AUDIENCE)")
    issue.add_argument("--tenancy-id", type=int, default=None, help="Tenancy id")
    issue.add_argument("--ttl", type=int, default=None, help="Lifetime in seconds (defaults to UNIAUTH_JWT_TTL_SECONDS)")
    issue.set_defaults(handler=cmd_issue)

    verify = subparsers.add_parser("verify", help="Verify a token and print its claims")
    verify.add_argument("token", help="Compact JWT")
    verify.add_argument("--issuer", default=None, help="Require this issuer")
    verify.add_argument("--audience", default=None, help="Require this audience")
    verify.set_defaults(handler=cmd_verify)

    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    set_request_id()

    try:
        config = get_config("token")
        configure_logging(config.service_name, config.log_level, config.json_logs)
        return args.handler(args, config)
    except UniauthException as e:
        _print_error(e)
        return _exit_code(e)
    except ValueError as e:
        # Claim validation, e.g. a negative --ttl
        print(json.dumps({"code": "INVALID_ARGUMENT", "message": str(e)}), file=sys.stderr)
        return EXIT_INVALID


if __name__ == "__main__":
    sys.exit(main())
