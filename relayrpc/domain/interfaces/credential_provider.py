"""Interface for session/credential providers.

The invocation engine only reads from the provider: it never refreshes
credentials and treats a missing session as a non-retryable precondition.
"""

import abc
from typing import Optional

from ..models.common import AccessToken, AccountID


class CredentialProvider(abc.ABC):
    """Abstract Base Class for the session supplying bearer credentials."""

    @property
    @abc.abstractmethod
    def account_id(self) -> AccountID:
        """The account the session is logged on as."""
        pass

    @abc.abstractmethod
    def is_session_ready(self) -> bool:
        """Returns True when the session is connected and logged on."""
        pass

    @abc.abstractmethod
    def current_access_token(self) -> Optional[AccessToken]:
        """Returns the current access token, or None when none is available."""
        pass
