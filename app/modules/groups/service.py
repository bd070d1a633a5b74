from supabase import Client
from app.modules.groups.schemas import (
    GroupCreate, GroupResponse, MemberAdd, MemberPaymentUpdate, MemberResponse
)
from typing import List
from uuid import UUID
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_group(self, group_data: GroupCreate) -> GroupResponse:
        """Create a group together with its initial members"""
        try:
            result = self.supabase.table("groups").insert({
                "name": group_data.name,
                "currency": group_data.currency
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create group")

            group = result.data[0]
            members = []
            if group_data.member_names:
                members_result = self.supabase.table("members").insert([
                    {"group_id": group["id"], "name": name}
                    for name in group_data.member_names
                ]).execute()
                members = members_result.data or []

            logger.info(f"Created group {group['id']} with {len(members)} members")
            return GroupResponse(**group, members=[MemberResponse(**m) for m in members])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating group: {e}")
            raise HTTPException(status_code=500, detail="Failed to create group")

    def get_group(self, group_id: UUID) -> GroupResponse:
        """Get group with its members"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", str(group_id))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            return GroupResponse(**result.data[0], members=self.list_members(group_id))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch group")

    def delete_group(self, group_id: UUID) -> bool:
        """Delete group; members, expenses and splits go with it (on delete cascade)"""
        try:
            result = self.supabase.table("groups")\
                .delete()\
                .eq("id", str(group_id))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            logger.info(f"Deleted group {group_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to delete group")

    def list_members(self, group_id: UUID) -> List[MemberResponse]:
        """List members of a group in creation order"""
        try:
            result = self.supabase.table("members")\
                .select("*")\
                .eq("group_id", str(group_id))\
                .order("created_at")\
                .execute()

            return [MemberResponse(**member) for member in result.data or []]
        except Exception as e:
            logger.error(f"Error listing members of group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch members")

    def get_member(self, group_id: UUID, member_id: UUID) -> MemberResponse:
        """Get a member, scoped to the group"""
        try:
            result = self.supabase.table("members")\
                .select("*")\
                .eq("id", str(member_id))\
                .eq("group_id", str(group_id))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")

            return MemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching member {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch member")

    def add_member(self, group_id: UUID, member_data: MemberAdd) -> GroupResponse:
        """Add a member and return the updated group"""
        try:
            # Verify group exists
            self.get_group(group_id)

            result = self.supabase.table("members").insert({
                "group_id": str(group_id),
                "name": member_data.name
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to add member")

            return self.get_group(group_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding member to group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to add member")

    def remove_member(self, group_id: UUID, member_id: UUID) -> bool:
        """Remove a member that no transaction refers to"""
        try:
            self.get_member(group_id, member_id)

            if self._member_has_transactions(group_id, member_id):
                raise HTTPException(
                    status_code=409,
                    detail="Member is referenced by recorded transactions"
                )

            self.supabase.table("members")\
                .delete()\
                .eq("id", str(member_id))\
                .eq("group_id", str(group_id))\
                .execute()

            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error removing member {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to remove member")

    def update_member_payment(
        self,
        group_id: UUID,
        member_id: UUID,
        payment_data: MemberPaymentUpdate
    ) -> MemberResponse:
        """Replace a member's payment details"""
        try:
            self.get_member(group_id, member_id)

            result = self.supabase.table("members")\
                .update({
                    "paypal_email": payment_data.paypal_email,
                    "iban": payment_data.iban
                })\
                .eq("id", str(member_id))\
                .eq("group_id", str(group_id))\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Member not found")

            return MemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating payment info of member {member_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to update payment info")

    def _member_has_transactions(self, group_id: UUID, member_id: UUID) -> bool:
        member = str(member_id)
        as_party = self.supabase.table("expenses")\
            .select("id")\
            .eq("group_id", str(group_id))\
            .or_(f"paid_by.eq.{member},transfer_to.eq.{member}")\
            .limit(1)\
            .execute()
        if as_party.data:
            return True

        in_split = self.supabase.table("expense_splits")\
            .select("id")\
            .eq("member_id", member)\
            .limit(1)\
            .execute()
        return bool(in_split.data)
