"""
RSA key loading package.

Turns PEM (or bare base64 DER) key text into parsed keys for RS256
signing and verification. Keys are parsed once and held immutably by
the issuer and verifier.
"""

from .loader import (
    RSAKeyPair,
    generate_key_pair,
    load_key_pair,
    load_private_key,
    load_public_key,
    read_key_file,
    resolve_key,
)

__all__ = [
    "RSAKeyPair",
    "generate_key_pair",
    "load_key_pair",
    "load_private_key",
    "load_public_key",
    "read_key_file",
    "resolve_key",
]
