"""
Capabilities Configuration
This config defines the five capabilities a group token can carry, their wire
names and the defaults used when minting share links.

Wire names:
- "compact" is what tokens are issued with today.
- "legacy" is the long-form name older tokens were issued with. Decoders must
  keep accepting it.
"""

# Define capabilities and their wire names
CAPABILITIES = {
    "delete_group": {
        "compact": "dg",
        "legacy": "can_delete_group",
        "description": "Delete the whole group"
    },
    "manage_members": {
        "compact": "mm",
        "legacy": "can_manage_members",
        "description": "Add and remove group members"
    },
    "update_payment": {
        "compact": "up",
        "legacy": "can_update_payment",
        "description": "Update members' payment details"
    },
    "add_expenses": {
        "compact": "ae",
        "legacy": "can_add_expenses",
        "description": "Record new expenses, transfers and incomes"
    },
    "edit_expenses": {
        "compact": "ee",
        "legacy": "can_edit_expenses",
        "description": "Edit and delete recorded expenses"
    }
}

# Claim names outside the capability set
CLAIM_NAMES = {
    "group_id": {"compact": "gid", "legacy": "group_id"},
    "capabilities": {"compact": "cap", "legacy": "permissions"},
}

# What a share link grants unless the caller asks otherwise.
# Destructive/admin rights are opt-in.
SHARE_LINK_DEFAULTS = {
    "delete_group": False,
    "manage_members": False,
    "update_payment": True,
    "add_expenses": True,
    "edit_expenses": True
}


def get_capability_matrix():
    """
    Returns a list describing every capability
    Format: [
        {"name": "delete_group", "compact": "dg", "legacy": "can_delete_group", "description": "..."},
        ...
    ]
    """
    return [
        {"name": name, **config}
        for name, config in CAPABILITIES.items()
    ]
