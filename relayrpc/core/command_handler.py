"""Command Handler: Orchestrates CLI command execution.

Receives commands from the main entry point (main.py), delegates the work to
the TwoFactorService and turns invocation outcomes into user-facing messages
and process exit codes.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from relayrpc.core.services.two_factor_service import TwoFactorService
from relayrpc.domain.interfaces.credential_provider import CredentialProvider
from relayrpc.domain.interfaces.user_interface import UserInterface
from relayrpc.domain.models.invocation import InvocationOutcome
from relayrpc.domain.models.two_factor import ADD_AUTHENTICATOR_ENDPOINT, FINALIZE_ADD_AUTHENTICATOR_ENDPOINT

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1

STATUS_OK = 1
UNAVAILABLE_MESSAGE = (
    "Session is not ready. Configure 'session.account_id' and 'session.access_token' "
    "(or RELAYRPC_SESSION_ACCOUNT_ID / RELAYRPC_SESSION_ACCESS_TOKEN)."
)


class CommandHandler:
    """Handles incoming commands and delegates to the two-factor service."""

    def __init__(
        self,
        two_factor_service: TwoFactorService,
        session: CredentialProvider,
        ui: UserInterface,
    ):
        self.two_factor_service = two_factor_service
        self.session = session
        self.ui = ui

    def _report_failure(self, operation: str, outcome: InvocationOutcome[Any]) -> Optional[int]:
        """Displays unavailable/exhausted outcomes. Returns an exit code, or None on success."""
        if outcome.is_unavailable:
            self.ui.display_warning(UNAVAILABLE_MESSAGE, log=False)
            return EXIT_FAILED
        if outcome.is_exhausted:
            self.ui.display_error(f"{operation} failed after {outcome.attempts} attempts.")
            return EXIT_FAILED
        return None

    async def handle_add_authenticator(self, device_id: str, save_path: Optional[Path] = None) -> int:
        """Handles the 'add-authenticator' command."""
        logger.info(f"Handling 'add-authenticator' command for device: {device_id}")
        try:
            outcome = await self.two_factor_service.add_authenticator(self.session, device_id)
        except ValueError as e:
            self.ui.display_error(f"Invalid arguments: {e}")
            return EXIT_FAILED

        failure = self._report_failure(ADD_AUTHENTICATOR_ENDPOINT, outcome)
        if failure is not None:
            return failure

        body = outcome.body
        self.ui.display_result(ADD_AUTHENTICATOR_ENDPOINT, body.to_dict())
        if body.status != STATUS_OK:
            self.ui.display_warning(f"The service answered with status {body.status}; the authenticator was not added.")
            return EXIT_FAILED

        if save_path is not None:
            try:
                self._save_response(save_path, body.to_dict())
            except OSError as e:
                logger.error(f"Failed to save response to {save_path}: {e}", exc_info=True)
                self.ui.display_error(f"Could not save the response to {save_path}: {e}")
                return EXIT_FAILED
            self.ui.display_info(f"Response saved to {save_path}. Keep this file private.")
        return EXIT_OK

    async def handle_finalize_authenticator(
        self,
        activation_code: str,
        authenticator_code: str,
        authenticator_time: int,
    ) -> int:
        """Handles the 'finalize-authenticator' command."""
        logger.info("Handling 'finalize-authenticator' command")
        try:
            outcome = await self.two_factor_service.finalize_authenticator(
                self.session, activation_code, authenticator_code, authenticator_time
            )
        except ValueError as e:
            self.ui.display_error(f"Invalid arguments: {e}")
            return EXIT_FAILED

        failure = self._report_failure(FINALIZE_ADD_AUTHENTICATOR_ENDPOINT, outcome)
        if failure is not None:
            return failure

        body = outcome.body
        self.ui.display_result(FINALIZE_ADD_AUTHENTICATOR_ENDPOINT, body.to_dict())
        if body.want_more:
            self.ui.display_info("The service wants another code; run finalize-authenticator again with the next code.")
        if not body.success:
            self.ui.display_warning(f"The authenticator was not activated (status {body.status}).")
            return EXIT_FAILED
        return EXIT_OK

    def handle_show_config(self, config: Mapping[str, Any]) -> int:
        """Handles the 'show-config' command."""
        self.ui.display_result("Effective configuration", config)
        return EXIT_OK

    @staticmethod
    def _save_response(path: Path, data: Mapping[str, Any]) -> None:
        """Writes the response as JSON readable only by the owner."""
        path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, 'w', encoding='utf-8') as f:
            f.write(json.dumps(data, indent=2, sort_keys=True))
        # The mode passed to os.open only applies to newly created files
        if os.name != "nt":
            os.chmod(path, 0o600)
