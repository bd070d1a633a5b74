from fastapi import APIRouter, Depends
from app.config.permissions_config import get_capability_matrix
from app.core.dependencies import get_auth_service, get_group_auth
from app.modules.auth.schemas import (
    GroupAuth, ShareLinkCreate, TokenInfoResponse, TokenMergeRequest, TokenResponse
)
from app.modules.auth.service import AuthService
from typing import Dict, List

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me", response_model=TokenInfoResponse)
async def get_current_token(
    auth: GroupAuth = Depends(get_group_auth),
    service: AuthService = Depends(get_auth_service)
):
    """Describe the current token: its group, capabilities and expiry (for frontend UI)."""
    return service.describe(auth.claims)


@router.get("/capabilities", response_model=List[Dict[str, str]])
async def list_capabilities():
    """List every capability a token can carry"""
    return get_capability_matrix()


@router.post("/share-links", response_model=TokenResponse, status_code=201)
async def create_share_link(
    request: ShareLinkCreate,
    auth: GroupAuth = Depends(get_group_auth),
    service: AuthService = Depends(get_auth_service)
):
    """Mint a share-link token; capabilities the caller lacks are dropped"""
    return service.create_share_link(auth, request.to_capabilities())


@router.post("/merge", response_model=TokenResponse)
async def merge_tokens(
    request: TokenMergeRequest,
    auth: GroupAuth = Depends(get_group_auth),
    service: AuthService = Depends(get_auth_service)
):
    """Combine the current token with another token for the same group"""
    return service.merge_tokens(auth, request.token)
