"""
Token service package for uniauth.

Issues and verifies RS256 identity tokens:

- app.keys: RSA key loading (PEM or bare base64 DER) and key generation.
- app.tokens: claim model, issuer, verifier and the TokenSecurity facade.
- app.cli: `uniauth-token` command line for keygen/issue/verify.

Design notes:
- Importing the package has no side effects; keys are parsed when a
  TokenSecurity (or issuer/verifier) is constructed.
- Use the shared/ utilities for configuration, logging, metrics and errors.
- Stateless apart from the immutable key pair; no network or disk IO
  beyond reading key files named in configuration.
"""
