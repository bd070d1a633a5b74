import logging
from typing import Optional
from uuid import UUID

from app.core.capabilities import CapabilitySet
from app.core.exceptions import AuthInvalid, AuthMissing, TokenError, ValidationError
from app.core.tokens import TokenClaims, TokenCodec
from app.modules.auth.schemas import GroupAuth, TokenInfoResponse, TokenResponse

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, codec: TokenCodec):
        self.codec = codec

    def issue_token(self, group_id: UUID, capabilities: Optional[CapabilitySet] = None) -> str:
        """Issue a token for a group; no capabilities means full (legacy) access"""
        return self.codec.issue(group_id, capabilities)

    def verify_token(self, token: Optional[str]) -> TokenClaims:
        """Verify a bearer token. Raises AuthMissing or AuthInvalid, never returns partial claims."""
        if not token:
            raise AuthMissing()
        try:
            return self.codec.verify(token)
        except TokenError as e:
            logger.warning("Rejected token: %s", e.reason.value)
            raise AuthInvalid(e.reason)

    @staticmethod
    def resolve_capabilities(claims: TokenClaims) -> CapabilitySet:
        """Effective capabilities of verified claims; tokens without any resolve to full access"""
        if claims.capabilities is None:
            return CapabilitySet.all()
        return claims.capabilities

    def authenticate(self, token: Optional[str]) -> GroupAuth:
        claims = self.verify_token(token)
        return GroupAuth(
            group_id=claims.group_id,
            capabilities=self.resolve_capabilities(claims),
            claims=claims,
        )

    def describe(self, claims: TokenClaims) -> TokenInfoResponse:
        return TokenInfoResponse(
            group_id=claims.group_id,
            capabilities=self.resolve_capabilities(claims).resolved(),
            expires_at=claims.expires_at,
            legacy=claims.capabilities is None,
        )

    def build_token_response(self, group_id: UUID, capabilities: CapabilitySet) -> TokenResponse:
        token = self.issue_token(group_id, capabilities)
        info = self.describe(self.codec.verify(token))
        return TokenResponse(token=token, **info.model_dump())

    def create_share_link(self, auth: GroupAuth, requested: CapabilitySet) -> TokenResponse:
        """Mint a token for sharing. It never grants more than the caller holds."""
        granted = requested.cap_by(auth.capabilities)
        logger.info("Minting share link for group %s with %s", auth.group_id, granted.resolved())
        return self.build_token_response(auth.group_id, granted)

    def merge_tokens(self, auth: GroupAuth, other_token: str) -> TokenResponse:
        """Combine the caller's token with another token for the same group"""
        other = self.authenticate(other_token)
        if other.group_id != auth.group_id:
            raise ValidationError("Tokens belong to different groups")
        merged = auth.capabilities.union_with(other.capabilities)
        logger.info("Merged tokens for group %s", auth.group_id)
        return self.build_token_response(auth.group_id, merged)
