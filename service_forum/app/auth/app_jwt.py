"""
GitHub App JWT signing.
"""

import binascii
import time
from typing import Optional

import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.rsa import RSAPrivateKey

from shared.logging import get_logger
from .pkcs8 import private_key_to_pkcs8_der

# iat is back-dated to absorb clock skew with GitHub; 600s is the longest
# lifetime GitHub accepts for an App JWT.
JWT_BACKDATE_SECONDS = 60
JWT_LIFETIME_SECONDS = 600
JWT_ALGORITHM = "RS256"

logger = get_logger("forum.auth.app_jwt")


def load_signing_key(private_key_pem: str) -> Optional[RSAPrivateKey]:
    """Import an RSA signing key from PKCS#1 or PKCS#8 PEM text.

    Returns None when the key cannot be imported.
    """
    try:
        der = private_key_to_pkcs8_der(private_key_pem)
        key = serialization.load_der_private_key(der, password=None)
    except (ValueError, TypeError, binascii.Error, UnsupportedAlgorithm) as exc:
        logger.error("Failed to import GitHub App private key", error=type(exc).__name__)
        return None

    if not isinstance(key, RSAPrivateKey):
        logger.error("GitHub App private key is not an RSA key", key_type=type(key).__name__)
        return None
    return key


def build_claims(app_id: str, now: Optional[int] = None) -> dict:
    if now is None:
        now = int(time.time())
    return {
        "iat": now - JWT_BACKDATE_SECONDS,
        "exp": now + JWT_LIFETIME_SECONDS,
        "iss": app_id,
    }


def sign_app_jwt(app_id: str, private_key_pem: str, now: Optional[int] = None) -> Optional[str]:
    """Sign a short-lived JWT asserting the App identity.

    A key that cannot be imported yields None rather than an exception so
    callers can move on to the next credential source.
    """
    key = load_signing_key(private_key_pem)
    if key is None:
        return None

    return jwt.encode(
        build_claims(app_id, now),
        key,
        algorithm=JWT_ALGORITHM,
        headers={"typ": "JWT"},
    )
