"""Tests for API endpoints: authentication, capability checks and token minting."""

from datetime import datetime, timezone
from unittest.mock import MagicMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from slowapi import Limiter
from slowapi.util import get_remote_address

from app.core.capabilities import CapabilitySet
from app.core.dependencies import get_token_codec
from app.modules.expenses.routes import get_expense_service
from app.modules.expenses.schemas import BalanceResponse
from app.modules.expenses.service import ExpenseService
from app.modules.groups.routes import get_group_service
from app.modules.groups.schemas import GroupResponse, MemberResponse
from app.modules.groups.service import GroupService

API = "/api/v1"


@pytest.fixture
def group_service():
    return MagicMock(spec=GroupService)


@pytest.fixture
def expense_service():
    return MagicMock(spec=ExpenseService)


@pytest.fixture
def client(codec, group_service, expense_service):
    """Test client with storage services replaced by mocks."""
    from app.main import app

    app.dependency_overrides[get_token_codec] = lambda: codec
    app.dependency_overrides[get_group_service] = lambda: group_service
    app.dependency_overrides[get_expense_service] = lambda: expense_service
    app.state.limiter.reset()
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def bearer(codec, group_id):
    """Build an Authorization header for a token with the given capabilities."""
    def make(capabilities=None, for_group=None):
        token = codec.issue(for_group or group_id, capabilities)
        return {"Authorization": f"Bearer {token}"}
    return make


def make_group(group_id):
    return GroupResponse(
        id=group_id,
        name="Trip",
        currency="EUR",
        members=[MemberResponse(id=uuid4(), name="Alice"), MemberResponse(id=uuid4(), name="Bob")],
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


class TestHealthCheck:
    """Tests for health check endpoints."""

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.headers["X-Content-Type-Options"] == "nosniff"


class TestAuthentication:
    """Missing and invalid credentials are rejected before any service call."""

    def test_missing_token(self, client, group_service):
        response = client.get(f"{API}/groups/current")

        assert response.status_code == 401
        assert response.json()["detail"] == "Missing bearer token"
        assert response.headers["WWW-Authenticate"] == "Bearer"
        group_service.get_group.assert_not_called()

    def test_wrong_scheme(self, client):
        response = client.get(f"{API}/groups/current", headers={"Authorization": "Basic abc"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token"

    def test_malformed_token(self, client):
        response = client.get(f"{API}/groups/current", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token: malformed"

    def test_expired_token(self, client, codec, group_id):
        token = codec.issue(group_id, now=datetime(2000, 1, 1, tzinfo=timezone.utc))
        response = client.get(f"{API}/groups/current", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid token: expired"

    def test_valid_token(self, client, bearer, group_id, group_service):
        group_service.get_group.return_value = make_group(group_id)

        response = client.get(f"{API}/groups/current", headers=bearer())

        assert response.status_code == 200
        assert response.json()["id"] == str(group_id)
        group_service.get_group.assert_called_once_with(group_id)


class TestCapabilityChecks:
    """Each mutating route requires its capability and mutates nothing without it."""

    def test_add_expense_forbidden(self, client, bearer, expense_service):
        response = client.post(
            f"{API}/groups/current/expenses",
            json={"description": "Lunch", "amount": 10, "paid_by": str(uuid4())},
            headers=bearer(CapabilitySet(add_expenses=False)),
        )

        assert response.status_code == 403
        assert "add_expenses" in response.json()["detail"]
        expense_service.create_expense.assert_not_called()

    def test_delete_expense_forbidden(self, client, bearer, expense_service):
        response = client.delete(
            f"{API}/groups/current/expenses/{uuid4()}",
            headers=bearer(CapabilitySet(edit_expenses=False)),
        )
        assert response.status_code == 403
        expense_service.delete_expense.assert_not_called()

    def test_delete_group_forbidden(self, client, bearer, group_service):
        response = client.delete(f"{API}/groups/current", headers=bearer(CapabilitySet(delete_group=False)))
        assert response.status_code == 403
        group_service.delete_group.assert_not_called()

    def test_delete_group_allowed(self, client, bearer, group_id, group_service):
        response = client.delete(f"{API}/groups/current", headers=bearer(CapabilitySet.all()))
        assert response.status_code == 204
        group_service.delete_group.assert_called_once_with(group_id)

    def test_legacy_token_has_full_access(self, client, bearer, group_service):
        response = client.delete(f"{API}/groups/current", headers=bearer(None))
        assert response.status_code == 204

    def test_add_member_forbidden(self, client, bearer, group_service):
        response = client.post(
            f"{API}/groups/current/members",
            json={"name": "Dave"},
            headers=bearer(CapabilitySet(manage_members=False)),
        )
        assert response.status_code == 403
        group_service.add_member.assert_not_called()

    def test_update_payment_forbidden(self, client, bearer, group_service):
        response = client.put(
            f"{API}/groups/current/members/{uuid4()}/payment",
            json={"iban": "DE89370400440532013000"},
            headers=bearer(CapabilitySet(update_payment=False)),
        )
        assert response.status_code == 403
        group_service.update_member_payment.assert_not_called()

    def test_invalid_identifier(self, client, bearer, expense_service):
        response = client.put(
            f"{API}/groups/current/expenses/not-a-uuid",
            json={"description": "Lunch", "amount": 10, "paid_by": str(uuid4())},
            headers=bearer(),
        )
        assert response.status_code == 400
        assert "expense_id" in response.json()["detail"]
        expense_service.update_expense.assert_not_called()

    def test_transfer_without_recipient_is_rejected(self, client, bearer, expense_service):
        response = client.post(
            f"{API}/groups/current/expenses",
            json={"description": "Pay back", "amount": 10, "paid_by": str(uuid4()), "expense_type": "transfer"},
            headers=bearer(),
        )
        assert response.status_code == 422
        expense_service.create_expense.assert_not_called()


class TestGroups:
    """Group creation and read-only endpoints."""

    def test_create_group_returns_full_access_token(self, client, codec, group_id, group_service):
        group_service.create_group.return_value = make_group(group_id)

        response = client.post(f"{API}/groups", json={"name": "Trip", "member_names": ["Alice", "Bob"]})

        assert response.status_code == 201
        claims = codec.verify(response.json()["token"])
        assert claims.group_id == group_id
        assert claims.capabilities.has_all()
        assert group_service.create_group.call_args[0][0].currency == "EUR"

    def test_balances(self, client, bearer, group_id, expense_service):
        member_id = uuid4()
        expense_service.get_balances.return_value = [
            BalanceResponse(member_id=member_id, member_name="Alice", balance=20.0),
        ]

        response = client.get(f"{API}/groups/current/balances", headers=bearer(CapabilitySet(edit_expenses=False)))

        assert response.status_code == 200
        assert response.json() == [{"member_id": str(member_id), "member_name": "Alice", "balance": 20.0}]
        expense_service.get_balances.assert_called_once_with(group_id)


class TestTokens:
    """Token introspection, share links and merging."""

    def test_me(self, client, bearer, group_id):
        response = client.get(f"{API}/auth/me", headers=bearer(CapabilitySet(delete_group=False)))

        assert response.status_code == 200
        data = response.json()
        assert data["group_id"] == str(group_id)
        assert data["capabilities"]["delete_group"] is False
        assert data["capabilities"]["add_expenses"] is True
        assert data["legacy"] is False

    def test_me_legacy(self, client, bearer):
        data = client.get(f"{API}/auth/me", headers=bearer(None)).json()
        assert data["legacy"] is True
        assert all(data["capabilities"].values())

    def test_share_link_defaults(self, client, codec, bearer):
        response = client.post(f"{API}/auth/share-links", json={}, headers=bearer(CapabilitySet.all()))

        assert response.status_code == 201
        caps = codec.verify(response.json()["token"]).capabilities
        assert not caps.has_delete_group()
        assert not caps.has_manage_members()
        assert caps.has_update_payment()
        assert caps.has_add_expenses()
        assert caps.has_edit_expenses()

    def test_share_link_cannot_escalate(self, client, codec, bearer):
        response = client.post(
            f"{API}/auth/share-links",
            json={"manage_members": True},
            headers=bearer(CapabilitySet(manage_members=False)),
        )

        assert response.status_code == 201
        assert response.json()["capabilities"]["manage_members"] is False
        assert not codec.verify(response.json()["token"]).capabilities.has_manage_members()

    def test_merge(self, client, codec, bearer, group_id):
        other = codec.issue(group_id, CapabilitySet(add_expenses=False, edit_expenses=True))

        response = client.post(
            f"{API}/auth/merge",
            json={"token": other},
            headers=bearer(CapabilitySet(add_expenses=True, edit_expenses=False)),
        )

        assert response.status_code == 200
        caps = codec.verify(response.json()["token"]).capabilities
        assert caps.has_add_expenses()
        assert caps.has_edit_expenses()

    def test_merge_other_group(self, client, codec, bearer):
        other = codec.issue(uuid4())
        response = client.post(f"{API}/auth/merge", json={"token": other}, headers=bearer())
        assert response.status_code == 400

    def test_merge_invalid_token(self, client, bearer):
        response = client.post(f"{API}/auth/merge", json={"token": "garbage"}, headers=bearer())
        assert response.status_code == 401

    def test_capability_list(self, client):
        names = [c["name"] for c in client.get(f"{API}/auth/capabilities").json()]
        assert names == ["delete_group", "manage_members", "update_payment", "add_expenses", "edit_expenses"]


class TestRateLimit:
    """Requests beyond the configured limit are refused."""

    @pytest.fixture
    def low_limit(self):
        from app.main import app

        original = app.state.limiter
        app.state.limiter = Limiter(key_func=get_remote_address, default_limits=["2/minute"])
        yield
        app.state.limiter = original

    def test_third_request_is_throttled(self, client, low_limit):
        statuses = [client.get(f"{API}/auth/capabilities").status_code for _ in range(5)]
        assert statuses == [200, 200, 429, 429, 429]