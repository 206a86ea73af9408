"""
RSA key loading for token signing and verification.

Keys are accepted either as PEM text or, for compatibility with older
deployments, as the bare base64 body of an X.509 SubjectPublicKeyInfo
(public) or PKCS#8 (private) structure. Parsed keys are wrapped as JOSE
keys so that signing and verifying never re-parse key text.
"""

import base64
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple, Union

from cryptography import x509
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from jose import jwk
from jose.backends.base import Key
from jose.constants import ALGORITHMS
from jose.exceptions import JWKError

from shared.errors import InvalidKeyMaterialError, MissingArgumentError
from shared.logging import get_logger

logger = get_logger("token.keys")

_PEM_PREFIX = "-----BEGIN "
_CERTIFICATE_PREFIX = "-----BEGIN CERTIFICATE-----"
_WHITESPACE = re.compile(r"\s+")
_PARSE_ERRORS = (ValueError, TypeError, UnsupportedAlgorithm)


@dataclass(frozen=True)
class RSAKeyPair:
    """Parsed RSA key pair, shared read-only by issuer and verifier."""

    private_key: Key
    public_key: Key


def _require(text: Optional[str], argument: str) -> str:
    if text is None or not str(text).strip():
        raise MissingArgumentError(argument)
    return str(text).strip()


def _decode_body(text: str) -> bytes:
    return base64.b64decode(_WHITESPACE.sub("", text), validate=True)


def _parse_public(text: str) -> rsa.RSAPublicKey:
    try:
        if text.startswith(_CERTIFICATE_PREFIX):
            key = x509.load_pem_x509_certificate(text.encode("ascii")).public_key()
        elif text.startswith(_PEM_PREFIX):
            key = serialization.load_pem_public_key(text.encode("ascii"))
        else:
            key = serialization.load_der_public_key(_decode_body(text))
    except _PARSE_ERRORS as exc:
        logger.error("Public key is invalid", error=str(exc))
        raise InvalidKeyMaterialError("Public key is invalid", details={"key": "public"}) from exc

    if not isinstance(key, rsa.RSAPublicKey):
        logger.error("Public key is not an RSA key", key_type=type(key).__name__)
        raise InvalidKeyMaterialError("Public key is not an RSA key", details={"key": "public"})
    return key


def _parse_private(text: str) -> rsa.RSAPrivateKey:
    try:
        if text.startswith(_PEM_PREFIX):
            key = serialization.load_pem_private_key(text.encode("ascii"), password=None)
        else:
            key = serialization.load_der_private_key(_decode_body(text), password=None)
    except _PARSE_ERRORS as exc:
        # Never log the key text itself
        logger.error("Private key is invalid", error=str(exc))
        raise InvalidKeyMaterialError("Private key is invalid", details={"key": "private"}) from exc

    if not isinstance(key, rsa.RSAPrivateKey):
        logger.error("Private key is not an RSA key", key_type=type(key).__name__)
        raise InvalidKeyMaterialError("Private key is not an RSA key", details={"key": "private"})
    return key


def _to_jose_public(key: rsa.RSAPublicKey) -> Key:
    pem = key.public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    )
    try:
        return jwk.construct(pem, ALGORITHMS.RS256)
    except JWKError as exc:
        raise InvalidKeyMaterialError("Public key is invalid", details={"key": "public"}) from exc


def _to_jose_private(key: rsa.RSAPrivateKey) -> Key:
    pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    try:
        return jwk.construct(pem, ALGORITHMS.RS256)
    except JWKError as exc:
        raise InvalidKeyMaterialError("Private key is invalid", details={"key": "private"}) from exc


def load_public_key(text: Optional[str]) -> Key:
    """Parse an RSA public key usable for RS256 verification."""
    return _to_jose_public(_parse_public(_require(text, "public_key")))


def load_private_key(text: Optional[str]) -> Key:
    """Parse an RSA private key usable for RS256 signing."""
    return _to_jose_private(_parse_private(_require(text, "private_key")))


def load_key_pair(private_key: Optional[str], public_key: Optional[str]) -> RSAKeyPair:
    """Parse both halves of a key pair.

    Both keys are mandatory. Besides being well-formed RSA keys they must
    belong together, otherwise every issued token would fail verification.
    """
    private_text = _require(private_key, "private_key")
    public_text = _require(public_key, "public_key")

    public = _parse_public(public_text)
    private = _parse_private(private_text)

    if private.public_key().public_numbers() != public.public_numbers():
        logger.error("Key pair mismatch", key_size=public.key_size)
        raise InvalidKeyMaterialError(
            "Private and public keys do not belong to the same key pair",
            details={"key": "pair"}
        )

    logger.debug("Key pair loaded", key_size=public.key_size)
    return RSAKeyPair(private_key=_to_jose_private(private), public_key=_to_jose_public(public))


def read_key_file(path: Union[str, Path]) -> str:
    """Read key text from disk; binary DER files are returned base64 encoded."""
    path = Path(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.error("Unable to read key file", path=str(path), error=str(exc))
        raise InvalidKeyMaterialError(f"Unable to read key file: {path}", details={"path": str(path)}) from exc

    try:
        return data.decode("ascii")
    except UnicodeDecodeError:
        return base64.b64encode(data).decode("ascii")


def resolve_key(source: Union[str, Path, None]) -> Optional[str]:
    """Return key text for an inline value or a key file path."""
    if isinstance(source, Path):
        return read_key_file(source)
    return source


def generate_key_pair(key_size: int = 2048) -> Tuple[str, str]:
    """Generate a fresh RSA key pair as ``(private_pem, public_pem)``."""
    private = rsa.generate_private_key(public_exponent=65537, key_size=key_size)
    private_pem = private.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    ).decode("ascii")
    public_pem = private.public_key().public_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PublicFormat.SubjectPublicKeyInfo,
    ).decode("ascii")
    return private_pem, public_pem
