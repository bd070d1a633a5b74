"""Signing and verification of group tokens.

A token is an HS256 JWT whose claims name one group, an expiry and optionally
a capability set. Tokens are issued with compact claim names (`gid`, `cap`,
`dg`, ...). Tokens issued under the older long-form names (`group_id`,
`permissions`, `can_delete_group`, ...) still verify.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from app.config.permissions_config import CLAIM_NAMES
from app.core.capabilities import CapabilitySet
from app.core.exceptions import TokenError, TokenFailure

logger = logging.getLogger(__name__)


def _claim_field(name: str, **kwargs):
    names = CLAIM_NAMES[name]
    return Field(
        validation_alias=AliasChoices(names["compact"], names["legacy"]),
        serialization_alias=names["compact"],
        **kwargs,
    )


class TokenClaims(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    group_id: UUID = _claim_field("group_id")
    exp: int
    capabilities: Optional[CapabilitySet] = _claim_field("capabilities", default=None)

    @property
    def expires_at(self) -> datetime:
        return datetime.fromtimestamp(self.exp, tz=timezone.utc)

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class TokenCodec:
    """Issues and verifies group tokens with a fixed signing key.

    Holds no state besides its configuration, so one instance can be shared
    freely between requests.
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_days: int = 3650):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.ttl_days = ttl_days

    def issue(
        self,
        group_id: UUID,
        capabilities: Optional[CapabilitySet] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Sign a token for `group_id`.

        Without `capabilities` the token carries no capability claim and
        resolves to full access, like tokens issued before capabilities
        existed.
        """
        issued_at = now or datetime.now(timezone.utc)
        claims = TokenClaims(
            group_id=group_id,
            exp=int((issued_at + timedelta(days=self.ttl_days)).timestamp()),
            capabilities=capabilities,
        )
        return jwt.encode(claims.to_wire(), self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> TokenClaims:
        """Verify signature and expiry and decode the claims.

        Raises:
            TokenError: with reason malformed, signature_mismatch or expired
        """
        try:
            jwt.get_unverified_claims(token)
        except JWTError as e:
            raise TokenError(TokenFailure.MALFORMED, str(e)) from e

        try:
            payload = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except ExpiredSignatureError as e:
            raise TokenError(TokenFailure.EXPIRED, str(e)) from e
        except JWTClaimsError as e:
            raise TokenError(TokenFailure.MALFORMED, str(e)) from e
        except JWTError as e:
            raise TokenError(TokenFailure.SIGNATURE_MISMATCH, str(e)) from e

        try:
            return TokenClaims.model_validate(payload)
        except PydanticValidationError as e:
            logger.warning("Signed token has unusable claims: %s", e.error_count())
            raise TokenError(TokenFailure.MALFORMED, "Token claims are incomplete") from e
