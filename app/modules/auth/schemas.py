from pydantic import BaseModel, ConfigDict, Field
from typing import Dict
from datetime import datetime
from uuid import UUID

from app.config.permissions_config import SHARE_LINK_DEFAULTS
from app.core.capabilities import CapabilitySet
from app.core.tokens import TokenClaims


class GroupAuth(BaseModel):
    """Authenticated principal: the token's group and its effective capabilities."""
    model_config = ConfigDict(frozen=True)

    group_id: UUID
    capabilities: CapabilitySet
    claims: TokenClaims


class ShareLinkCreate(BaseModel):
    delete_group: bool = SHARE_LINK_DEFAULTS["delete_group"]
    manage_members: bool = SHARE_LINK_DEFAULTS["manage_members"]
    update_payment: bool = SHARE_LINK_DEFAULTS["update_payment"]
    add_expenses: bool = SHARE_LINK_DEFAULTS["add_expenses"]
    edit_expenses: bool = SHARE_LINK_DEFAULTS["edit_expenses"]

    def to_capabilities(self) -> CapabilitySet:
        return CapabilitySet(**self.model_dump())


class TokenMergeRequest(BaseModel):
    token: str = Field(min_length=1)


class TokenInfoResponse(BaseModel):
    group_id: UUID
    capabilities: Dict[str, bool]
    expires_at: datetime
    legacy: bool = False  # token predates capability claims


class TokenResponse(TokenInfoResponse):
    token: str
    token_type: str = "bearer"
