"""
Completion of the Notion OAuth authorization.

The flow runs once per provider redirect:

1. validate the callback (provider error, missing code, credentials, state),
2. exchange the code for an access token,
3. create the notes database in the user's workspace,
4. persist the authorization record against the initiating user.

Steps 1 and 2 end the flow on failure. A failed database creation falls back
to a default name and a failed write is logged; both still count as success
for the user. ``run`` never raises; unexpected errors become ``server_error``.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, List, Optional

from noteflow.clients.notion_auth import (
    InvalidOAuthStateError,
    NotionAPIError,
    NotionOAuthClient,
    OAuthTokenExchangeError,
)
from noteflow.core.config import NotionSettings
from noteflow.models.authorization import (
    AuthorizationRecord,
    AuthorizationRequest,
    OAuthStateClaims,
    ProvisionedResource,
)
from noteflow.services.oauth_state import OAuthStateService
from noteflow.services.user_store import UserStore

logger = logging.getLogger(__name__)


class FlowOutcome(str, enum.Enum):
    SUCCEEDED = "succeeded"
    SUCCEEDED_WITH_PERSISTENCE_WARNING = "succeeded_with_persistence_warning"
    FAILED = "failed"


class FailureReason(str, enum.Enum):
    PROVIDER_DENIED = "provider_denied"
    MISSING_CODE = "missing_code"
    INVALID_STATE = "invalid_state"
    MISCONFIGURED = "misconfigured"
    TOKEN_EXCHANGE_FAILED = "token_exchange_failed"
    SERVER_ERROR = "server_error"


class FlowWarning(str, enum.Enum):
    RESOURCE_CREATION_FAILED = "resource_creation_failed"
    PERSISTENCE_FAILED = "persistence_failed"


_MESSAGES = {
    FailureReason.MISSING_CODE: "No authorization code was returned by Notion.",
    FailureReason.INVALID_STATE: "The authorization request could not be verified. Please try again.",
    FailureReason.MISCONFIGURED: "The Notion integration is not fully configured.",
    FailureReason.SERVER_ERROR: "Server error, please try again.",
}


@dataclass
class FlowResult:
    """Terminal state of one flow invocation."""

    outcome: FlowOutcome
    record: Optional[AuthorizationRecord] = None
    reason: Optional[FailureReason] = None
    message: Optional[str] = None
    detail: Any = None
    warnings: List[FlowWarning] = field(default_factory=list)
    user_id: Optional[str] = None
    claims: Optional[OAuthStateClaims] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is not FlowOutcome.FAILED

    @property
    def persisted(self) -> bool:
        return (
            self.outcome is FlowOutcome.SUCCEEDED
            and self.user_id is not None
            and self.record is not None
        )

    @classmethod
    def failed(
        cls,
        reason: FailureReason,
        message: Optional[str] = None,
        *,
        detail: Any = None,
        claims: Optional[OAuthStateClaims] = None,
    ) -> "FlowResult":
        return cls(
            outcome=FlowOutcome.FAILED,
            reason=reason,
            message=message or _MESSAGES[reason],
            detail=detail,
            claims=claims,
        )


class NotionProvisioningFlow:
    """Turns a provider redirect into a stored Notion authorization."""

    def __init__(
        self,
        *,
        settings: NotionSettings,
        oauth_client: NotionOAuthClient,
        state_service: Optional[OAuthStateService],
        user_store: Optional[UserStore],
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._credentials_configured = settings.has_client_credentials
        if not self._credentials_configured:
            logger.warning(
                "NOTION_CLIENT_ID/NOTION_CLIENT_SECRET are not set; "
                "Notion callbacks will report a configuration error."
            )
        elif state_service is None or user_store is None:
            raise ValueError("A configured flow needs a state service and a user store.")
        self._oauth = oauth_client
        self._state = state_service
        self._users = user_store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    async def run(
        self,
        request: AuthorizationRequest,
        *,
        session_user_id: Optional[str] = None,
    ) -> FlowResult:
        try:
            return await self._run(request, session_user_id)
        except Exception:  # pylint: disable=broad-except
            logger.exception("Unexpected error while completing Notion authorization")
            return FlowResult.failed(FailureReason.SERVER_ERROR)

    async def _run(
        self, request: AuthorizationRequest, session_user_id: Optional[str]
    ) -> FlowResult:
        logger.info(
            "Notion callback received (code=%s, error=%s)",
            bool(request.code),
            request.error,
        )

        if request.error:
            logger.warning(
                "Notion authorization denied: %s %s",
                request.error,
                request.error_description or "",
            )
            return FlowResult.failed(
                FailureReason.PROVIDER_DENIED,
                request.error_description or request.error,
                detail=request.error,
            )

        if not request.code:
            logger.warning("Notion callback arrived without an authorization code")
            return FlowResult.failed(FailureReason.MISSING_CODE)

        if not self._credentials_configured:
            logger.error("Missing Notion client credentials")
            return FlowResult.failed(FailureReason.MISCONFIGURED)

        try:
            claims = self._state.consume(request.state)
        except InvalidOAuthStateError as exc:
            logger.warning("Rejected Notion callback state: %s", exc)
            return FlowResult.failed(FailureReason.INVALID_STATE, detail=str(exc))

        try:
            token = await self._oauth.exchange_authorization_code(request.code)
        except OAuthTokenExchangeError as exc:
            logger.error(
                "Notion token exchange failed (status=%s): %s",
                exc.status_code,
                exc.body if exc.body is not None else exc.reason,
            )
            return FlowResult.failed(
                FailureReason.TOKEN_EXCHANGE_FAILED,
                f"Failed to obtain access token: {exc.reason}",
                detail=exc.body,
                claims=claims,
            )

        logger.info(
            "Notion token exchange succeeded for workspace %s (%s)",
            token.workspace_name,
            token.workspace_id,
        )

        warnings: List[FlowWarning] = []
        try:
            resource = await self._oauth.create_workspace_database(token.access_token)
            logger.info("Created Notion database %s", resource.resource_id)
        except NotionAPIError as exc:
            logger.error("Notion database creation failed: %s", exc.body or exc)
            resource = ProvisionedResource.fallback()
            warnings.append(FlowWarning.RESOURCE_CREATION_FAILED)

        record = AuthorizationRecord.from_exchange(
            token, resource, authorized_at=self._clock()
        )

        outcome = FlowOutcome.SUCCEEDED
        user_id = claims.user_id or session_user_id
        if user_id:
            try:
                self._users.save_authorization(user_id, record)
                logger.info("Saved Notion authorization for user %s", user_id)
            except Exception:  # pylint: disable=broad-except
                logger.exception("Failed to save Notion authorization for user %s", user_id)
                warnings.append(FlowWarning.PERSISTENCE_FAILED)
                outcome = FlowOutcome.SUCCEEDED_WITH_PERSISTENCE_WARNING
        else:
            logger.info("No user bound to this Notion callback; authorization not stored")

        return FlowResult(
            outcome=outcome,
            record=record,
            warnings=warnings,
            user_id=user_id,
            claims=claims,
        )


__all__ = [
    "FailureReason",
    "FlowOutcome",
    "FlowResult",
    "FlowWarning",
    "NotionProvisioningFlow",
]
