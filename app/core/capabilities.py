"""
Capability sets carried by group tokens.

Every flag is tri-state: True (granted), False (denied) or None (unset).
Unset always resolves to granted so tokens minted before granular permissions
existed keep full access. `resolve` is the only place that decision is made.
"""

from enum import Enum
from typing import Dict, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from app.config.permissions_config import CAPABILITIES


class Capability(str, Enum):
    DELETE_GROUP = "delete_group"
    MANAGE_MEMBERS = "manage_members"
    UPDATE_PAYMENT = "update_payment"
    ADD_EXPENSES = "add_expenses"
    EDIT_EXPENSES = "edit_expenses"


def resolve(flag: Optional[bool]) -> bool:
    """Resolve a tri-state flag. Unset means granted."""
    return True if flag is None else flag


def _wire_field(name: str):
    names = CAPABILITIES[name]
    return Field(
        default=None,
        validation_alias=AliasChoices(names["compact"], names["legacy"]),
        serialization_alias=names["compact"],
    )


class CapabilitySet(BaseModel):
    """Immutable set of the five group capabilities.

    Two sets are equal when they grant the same rights, whether a right is
    granted explicitly or by being unset.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    delete_group: Optional[bool] = _wire_field("delete_group")
    manage_members: Optional[bool] = _wire_field("manage_members")
    update_payment: Optional[bool] = _wire_field("update_payment")
    add_expenses: Optional[bool] = _wire_field("add_expenses")
    edit_expenses: Optional[bool] = _wire_field("edit_expenses")

    @classmethod
    def all(cls) -> "CapabilitySet":
        """Every capability granted. Used for the group creator's token."""
        return cls(**{c.value: True for c in Capability})

    @classmethod
    def from_wire(cls, data: Dict) -> "CapabilitySet":
        """Decode from compact (`dg`, ...) or legacy (`can_delete_group`, ...) names."""
        return cls.model_validate(data)

    def to_wire(self) -> Dict[str, bool]:
        """Encode with compact names. Unset flags are omitted."""
        return self.model_dump(by_alias=True, exclude_none=True)

    def has(self, capability: Capability) -> bool:
        return resolve(getattr(self, Capability(capability).value))

    def has_delete_group(self) -> bool:
        return self.has(Capability.DELETE_GROUP)

    def has_manage_members(self) -> bool:
        return self.has(Capability.MANAGE_MEMBERS)

    def has_update_payment(self) -> bool:
        return self.has(Capability.UPDATE_PAYMENT)

    def has_add_expenses(self) -> bool:
        return self.has(Capability.ADD_EXPENSES)

    def has_edit_expenses(self) -> bool:
        return self.has(Capability.EDIT_EXPENSES)

    def has_all(self) -> bool:
        return all(self.has(c) for c in Capability)

    def resolved(self) -> Dict[str, bool]:
        return {c.value: self.has(c) for c in Capability}

    def cap_by(self, caller: "CapabilitySet") -> "CapabilitySet":
        """Attenuate to what `caller` holds.

        A derived token can never exceed its issuer's rights, however many
        times it is derived again.
        """
        return CapabilitySet(**{c.value: self.has(c) and caller.has(c) for c in Capability})

    def union_with(self, other: "CapabilitySet") -> "CapabilitySet":
        """Combine two tokens' rights for the same group."""
        return CapabilitySet(**{c.value: self.has(c) or other.has(c) for c in Capability})

    def __eq__(self, other):
        if not isinstance(other, CapabilitySet):
            return NotImplemented
        return self.resolved() == other.resolved()

    def __hash__(self):
        return hash(tuple(self.resolved().values()))
