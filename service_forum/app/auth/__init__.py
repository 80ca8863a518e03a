"""
Credential handling for the forum service.

- pkcs8: PKCS#1 -> PKCS#8 key wrapping
- app_jwt: GitHub App JWT signing
- installation_tokens: JWT -> installation token exchange with caching
- credentials: ordered read-token fallback
"""

from .app_jwt import sign_app_jwt
from .credentials import CredentialResolver
from .installation_tokens import InstallationToken, InstallationTokenBroker
from .pkcs8 import pkcs1_to_pkcs8, private_key_to_pkcs8_der

__all__ = [
    "CredentialResolver",
    "InstallationToken",
    "InstallationTokenBroker",
    "pkcs1_to_pkcs8",
    "private_key_to_pkcs8_der",
    "sign_app_jwt",
]
