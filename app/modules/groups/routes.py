from fastapi import APIRouter, Depends
from app.database.supabase_client import get_supabase
from app.core.capabilities import Capability, CapabilitySet
from app.core.dependencies import get_auth_service, get_group_auth, parse_uuid, require_capability
from app.modules.auth.schemas import GroupAuth
from app.modules.auth.service import AuthService
from app.modules.groups.schemas import (
    GroupCreate, GroupResponse, GroupCreatedResponse,
    MemberAdd, MemberPaymentUpdate, MemberResponse
)
from app.modules.groups.service import GroupService
from supabase import Client

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(supabase: Client = Depends(get_supabase)) -> GroupService:
    return GroupService(supabase)


@router.post("", response_model=GroupCreatedResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    service: GroupService = Depends(get_group_service),
    auth_service: AuthService = Depends(get_auth_service)
):
    """Create a group (no auth required); the returned token grants everything"""
    group = service.create_group(group_data)
    token = auth_service.issue_token(group.id, CapabilitySet.all())
    return GroupCreatedResponse(group=group, token=token)


@router.get("/current", response_model=GroupResponse)
async def get_current_group(
    auth: GroupAuth = Depends(get_group_auth),
    service: GroupService = Depends(get_group_service)
):
    """Get the token's group with its members"""
    return service.get_group(auth.group_id)


@router.delete("/current", status_code=204)
async def delete_current_group(
    auth: GroupAuth = Depends(require_capability(Capability.DELETE_GROUP)),
    service: GroupService = Depends(get_group_service)
):
    """Delete the token's group (requires delete_group)"""
    service.delete_group(auth.group_id)
    return None


@router.post("/current/members", response_model=GroupResponse, status_code=201)
async def add_member(
    member_data: MemberAdd,
    auth: GroupAuth = Depends(require_capability(Capability.MANAGE_MEMBERS)),
    service: GroupService = Depends(get_group_service)
):
    """Add a member (requires manage_members)"""
    return service.add_member(auth.group_id, member_data)


@router.delete("/current/members/{member_id}", status_code=204)
async def remove_member(
    member_id: str,
    auth: GroupAuth = Depends(require_capability(Capability.MANAGE_MEMBERS)),
    service: GroupService = Depends(get_group_service)
):
    """Remove a member with no recorded transactions (requires manage_members)"""
    service.remove_member(auth.group_id, parse_uuid(member_id, "member_id"))
    return None


@router.put("/current/members/{member_id}/payment", response_model=MemberResponse)
async def update_member_payment(
    member_id: str,
    payment_data: MemberPaymentUpdate,
    auth: GroupAuth = Depends(require_capability(Capability.UPDATE_PAYMENT)),
    service: GroupService = Depends(get_group_service)
):
    """Update a member's payment details (requires update_payment)"""
    return service.update_member_payment(
        auth.group_id, parse_uuid(member_id, "member_id"), payment_data
    )
