"""
Read-credential resolution.
"""

from typing import Optional

from .installation_tokens import InstallationTokenBroker


class CredentialResolver:
    """Ordered fallback over the available read credentials.

    Order: configured server token, App installation token, the caller's
    own token. The resolver keeps no state of its own.
    """

    def __init__(self, broker: InstallationTokenBroker, server_token: Optional[str] = None):
        self.broker = broker
        self.server_token = server_token or None

    async def get_server_token(self) -> Optional[str]:
        if self.server_token:
            return self.server_token
        return await self.broker.get_installation_token()

    async def get_read_token(self, user_token: Optional[str] = None) -> Optional[str]:
        """Return the best available read token, or None."""
        server_token = await self.get_server_token()
        return server_token or user_token or None

    async def has_server_credential(self) -> bool:
        """False in anonymous mode, where reads rely on the user's token or REST."""
        return (await self.get_server_token()) is not None
