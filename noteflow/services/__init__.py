"""Service layer exports."""

from .notion_provisioning import (
    FailureReason,
    FlowOutcome,
    FlowResult,
    FlowWarning,
    NotionProvisioningFlow,
)
from .oauth_state import OAuthStateService
from .token_cipher import TokenCipherService
from .user_store import UserStore

__all__ = [
    "FailureReason",
    "FlowOutcome",
    "FlowResult",
    "FlowWarning",
    "NotionProvisioningFlow",
    "OAuthStateService",
    "TokenCipherService",
    "UserStore",
]
