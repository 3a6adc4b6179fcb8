"""A credential provider holding a fixed access token.

Used by the command line, where the token and account come from configuration
instead of a live client connection.
"""

import logging
from typing import Optional

from relayrpc.domain.interfaces.credential_provider import CredentialProvider
from relayrpc.domain.models.common import AccessToken, AccountID
from relayrpc.infrastructure.config.settings import get_access_token, get_account_id

logger = logging.getLogger(__name__)


class StaticSession(CredentialProvider):
    """Session that is ready whenever it is connected and holds a token."""

    def __init__(self, account_id: int, access_token: Optional[str] = None, connected: bool = True):
        self._account_id = AccountID(account_id)
        self._access_token = AccessToken(access_token) if access_token else None
        self.connected = connected

    @classmethod
    def from_config(cls) -> "StaticSession":
        """Builds a session from 'session.account_id' and 'session.access_token'.

        A missing account id yields a disconnected session rather than an error,
        so commands report the session as unavailable.
        """
        account_id = get_account_id()
        access_token = get_access_token()
        if account_id is None:
            logger.info("No account id configured; session is not connected.")
            return cls(account_id=0, access_token=access_token, connected=False)
        return cls(account_id=account_id, access_token=access_token)

    @property
    def account_id(self) -> AccountID:
        return self._account_id

    def is_session_ready(self) -> bool:
        return self.connected and self._account_id != 0

    def current_access_token(self) -> Optional[AccessToken]:
        return self._access_token

    def update_access_token(self, access_token: Optional[str]) -> None:
        self._access_token = AccessToken(access_token) if access_token else None
