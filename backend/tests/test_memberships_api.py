"""
Tests for Membership API endpoints.

Covers:
- Creation with billing period generation
- Validation error responses
- Listing memberships with their periods
- Termination rules
- Deletion with period cascade
"""
import pytest
from datetime import date, timedelta
from httpx import AsyncClient
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from membership_api.core.config import settings
from membership_api.models import BillingInterval, MembershipPeriod, MembershipState


GOLD_PLAN = {
    "name": "Gold Plan",
    "recurringPrice": 60,
    "paymentMethod": "credit card",
    "billingInterval": "monthly",
    "billingPeriods": 6,
    "validFrom": "2024-07-01",
}


async def count_periods(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(func.count()).select_from(MembershipPeriod))
    return result.scalar_one()


class TestCreateMembership:
    """Test POST /memberships."""

    @pytest.mark.asyncio
    async def test_create_gold_plan(self, client: AsyncClient):
        """Test the six month Gold Plan."""
        response = await client.post("/memberships", json=GOLD_PLAN)
        assert response.status_code == 201
        data = response.json()

        membership = data["membership"]
        assert membership["name"] == "Gold Plan"
        assert membership["recurringPrice"] == 60
        assert membership["paymentMethod"] == "credit card"
        assert membership["billingInterval"] == "monthly"
        assert membership["billingPeriods"] == 6
        assert membership["validFrom"] == "2024-07-01"
        assert membership["validUntil"] == "2025-01-01"
        assert membership["userId"] == settings.DEFAULT_USER_ID
        assert len(membership["uuid"]) == 36

        periods = data["membershipPeriods"]
        assert len(periods) == 6
        assert [p["start"] for p in periods] == [
            "2024-07-01", "2024-08-01", "2024-09-01",
            "2024-10-01", "2024-11-01", "2024-12-01",
        ]
        assert periods[-1]["end"] == "2025-01-01"
        assert all(p["membership"] == membership["id"] for p in periods)

    @pytest.mark.asyncio
    async def test_periods_are_contiguous(self, client: AsyncClient):
        """Test that every period starts where the previous one ended."""
        payload = {**GOLD_PLAN, "billingPeriods": 12, "validFrom": "2024-01-31"}
        response = await client.post("/memberships", json=payload)
        assert response.status_code == 201
        data = response.json()

        periods = data["membershipPeriods"]
        assert len(periods) == 12
        assert periods[0]["start"] == data["membership"]["validFrom"]
        assert periods[-1]["end"] == data["membership"]["validUntil"]
        for current, following in zip(periods, periods[1:]):
            assert current["end"] == following["start"]

    @pytest.mark.asyncio
    async def test_states_follow_dates(self, client: AsyncClient):
        """Test pending, active and expired memberships and periods."""
        today = date.today()

        future = {**GOLD_PLAN, "validFrom": (today + timedelta(days=10)).isoformat()}
        response = await client.post("/memberships", json=future)
        data = response.json()
        assert data["membership"]["state"] == "pending"
        assert {p["state"] for p in data["membershipPeriods"]} == {"pending"}

        past = {**GOLD_PLAN, "validFrom": (today - timedelta(days=800)).isoformat()}
        response = await client.post("/memberships", json=past)
        data = response.json()
        assert data["membership"]["state"] == "expired"
        assert {p["state"] for p in data["membershipPeriods"]} == {"expired"}

        current = {**GOLD_PLAN, "validFrom": today.isoformat()}
        response = await client.post("/memberships", json=current)
        data = response.json()
        assert data["membership"]["state"] == "active"
        period_states = [p["state"] for p in data["membershipPeriods"]]
        assert period_states == ["active"] + ["pending"] * 5

    @pytest.mark.asyncio
    async def test_valid_from_defaults_to_today(self, client: AsyncClient):
        """Test creating a membership without validFrom."""
        payload = {k: v for k, v in GOLD_PLAN.items() if k != "validFrom"}
        response = await client.post("/memberships", json=payload)
        assert response.status_code == 201
        assert response.json()["membership"]["validFrom"] == date.today().isoformat()

    @pytest.mark.asyncio
    async def test_weekly_membership(self, client: AsyncClient):
        """Test creating a weekly membership."""
        payload = {**GOLD_PLAN, "billingInterval": "weekly", "billingPeriods": 4}
        response = await client.post("/memberships", json=payload)
        assert response.status_code == 201
        data = response.json()
        assert data["membership"]["validUntil"] == "2024-07-29"
        assert len(data["membershipPeriods"]) == 4

    @pytest.mark.asyncio
    async def test_ids_and_uuids_are_unique(self, client: AsyncClient):
        """Test that each membership gets its own id and uuid."""
        first = (await client.post("/memberships", json=GOLD_PLAN)).json()
        second = (await client.post("/memberships", json=GOLD_PLAN)).json()
        assert first["membership"]["id"] != second["membership"]["id"]
        assert first["membership"]["uuid"] != second["membership"]["uuid"]

        period_ids = [p["id"] for p in first["membershipPeriods"] + second["membershipPeriods"]]
        assert len(set(period_ids)) == 12


class TestCreateMembershipValidation:
    """Test POST /memberships error responses."""

    @pytest.mark.asyncio
    async def test_cash_price_limit(self, client: AsyncClient, db_session: AsyncSession):
        """Test cash payments above 100 are rejected before anything is written."""
        payload = {**GOLD_PLAN, "paymentMethod": "cash", "recurringPrice": 150}
        response = await client.post("/memberships", json=payload)
        assert response.status_code == 400
        assert response.json() == {"message": "cashPriceBelow100"}
        assert await count_periods(db_session) == 0

    @pytest.mark.asyncio
    async def test_missing_fields(self, client: AsyncClient):
        """Test a request without mandatory fields."""
        response = await client.post("/memberships", json={"name": "Gold Plan"})
        assert response.status_code == 400
        assert response.json() == {"message": "missingMandatoryFields"}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides, code",
        [
            ({"billingPeriods": 5}, "billingPeriodsLessThan6Months"),
            ({"billingPeriods": 13}, "billingPeriodsMoreThan12Months"),
            ({"billingInterval": "yearly", "billingPeriods": 11}, "billingPeriodsMoreThan10Years"),
            ({"billingInterval": "weekly", "billingPeriods": 27}, "weeklyBillingCannotExceed6Months"),
            ({"billingInterval": "daily"}, "invalidBillingInterval"),
            ({"recurringPrice": -10}, "negativeRecurringPrice"),
            ({"validFrom": "yesterday-ish"}, "validFromMustBeAValidDateString"),
            ({"validFrom": "9999-12-01"}, "validUntilOutOfRange"),
            ({"name": "x" * 300}, "nameTooLong"),
            ({"recurringPrice": 1e9}, "recurringPriceTooLarge"),
            ({"recurringPrice": 0.005}, "recurringPriceTooManyDecimals"),
        ],
    )
    async def test_rule_violations(self, client: AsyncClient, overrides, code):
        """Test each rule maps to its error code."""
        response = await client.post("/memberships", json={**GOLD_PLAN, **overrides})
        assert response.status_code == 400
        assert response.json()["message"] == code

    @pytest.mark.asyncio
    async def test_malformed_body(self, client: AsyncClient):
        """Test a body that is not JSON."""
        response = await client.post(
            "/memberships",
            content="not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400
        assert response.json() == {"message": "missingMandatoryFields"}

    @pytest.mark.asyncio
    async def test_report_all_errors(self, client: AsyncClient, monkeypatch):
        """Test listing every failing rule when enabled."""
        monkeypatch.setattr(settings, "VALIDATION_REPORT_ALL_ERRORS", True)
        payload = {**GOLD_PLAN, "recurringPrice": -1, "billingPeriods": 20}
        response = await client.post("/memberships", json=payload)
        assert response.status_code == 400
        assert response.json() == {
            "message": "negativeRecurringPrice",
            "errors": ["negativeRecurringPrice", "billingPeriodsMoreThan12Months"],
        }


class TestListMemberships:
    """Test GET /memberships."""

    @pytest.mark.asyncio
    async def test_list_empty(self, client: AsyncClient):
        response = await client.get("/memberships")
        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_list_with_periods(self, client: AsyncClient):
        """Test that periods are listed under the "periods" key."""
        created = (await client.post("/memberships", json=GOLD_PLAN)).json()
        await client.post(
            "/memberships",
            json={**GOLD_PLAN, "name": "Silver Plan", "billingInterval": "yearly", "billingPeriods": 2},
        )

        response = await client.get("/memberships")
        assert response.status_code == 200
        data = response.json()
        assert len(data) == 2

        first = data[0]
        assert set(first.keys()) == {"membership", "periods"}
        assert first["membership"] == created["membership"]
        assert first["periods"] == created["membershipPeriods"]
        assert data[1]["membership"]["name"] == "Silver Plan"
        assert len(data[1]["periods"]) == 2


class TestTerminateMembership:
    """Test POST /memberships/{id}/terminate."""

    @pytest.mark.asyncio
    async def test_terminate_with_two_remaining_periods(
        self, client: AsyncClient, make_membership
    ):
        """Test that the remaining periods and the membership become terminated."""
        membership = await make_membership(
            valid_from=date.today() - timedelta(days=10),
            billing_interval=BillingInterval.WEEKLY,
            billing_periods=3,
        )

        response = await client.post(f"/memberships/{membership.id}/terminate")
        assert response.status_code == 200
        assert response.json() == {"message": "Membership terminated successfully"}

        data = (await client.get("/memberships")).json()
        assert data[0]["membership"]["state"] == "terminated"
        assert [p["state"] for p in data[0]["periods"]] == [
            "expired", "terminated", "terminated",
        ]

    @pytest.mark.asyncio
    async def test_terminate_inside_final_period(
        self, client: AsyncClient, make_membership
    ):
        """Test that a membership in its started final period cannot be terminated."""
        membership = await make_membership(
            valid_from=date.today() - timedelta(days=10),
            billing_interval=BillingInterval.WEEKLY,
            billing_periods=2,
        )

        response = await client.post(f"/memberships/{membership.id}/terminate")
        assert response.status_code == 400
        assert response.json()["message"].startswith("Termination not allowed:")

        data = (await client.get("/memberships")).json()
        assert data[0]["membership"]["state"] == "active"
        assert [p["state"] for p in data[0]["periods"]] == ["expired", "active"]

    @pytest.mark.asyncio
    async def test_terminate_pending_membership(
        self, client: AsyncClient, make_membership
    ):
        """Test terminating a membership that has not started yet."""
        membership = await make_membership(
            valid_from=date.today() + timedelta(days=5),
            billing_interval=BillingInterval.WEEKLY,
            billing_periods=1,
        )

        response = await client.post(f"/memberships/{membership.id}/terminate")
        assert response.status_code == 200
        assert all(p.state == MembershipState.TERMINATED for p in membership.periods)

    @pytest.mark.asyncio
    async def test_terminate_expired_membership(
        self, client: AsyncClient, make_membership
    ):
        """Test that expired memberships cannot be terminated."""
        membership = await make_membership(valid_from=date(2020, 1, 1))

        response = await client.post(f"/memberships/{membership.id}/terminate")
        assert response.status_code == 400
        assert response.json() == {"message": "Termination not allowed: membership is expired"}

    @pytest.mark.asyncio
    async def test_terminate_twice(self, client: AsyncClient, make_membership):
        """Test that a terminated membership cannot be terminated again."""
        membership = await make_membership(valid_from=date.today() + timedelta(days=30))

        assert (await client.post(f"/memberships/{membership.id}/terminate")).status_code == 200
        response = await client.post(f"/memberships/{membership.id}/terminate")
        assert response.status_code == 400
        assert response.json() == {"message": "Termination not allowed: membership is terminated"}

    @pytest.mark.asyncio
    async def test_terminate_not_found(self, client: AsyncClient):
        response = await client.post("/memberships/999/terminate")
        assert response.status_code == 404
        assert response.json() == {"message": "Membership with ID 999 not found"}


class TestDeleteMembership:
    """Test DELETE /memberships/{id}."""

    @pytest.mark.asyncio
    async def test_delete_membership(
        self, client: AsyncClient, db_session: AsyncSession, make_membership
    ):
        """Test that deleting a membership removes its periods."""
        membership = await make_membership(valid_from=date(2024, 7, 1))
        other = await make_membership(valid_from=date(2024, 7, 1), billing_periods=8)
        assert await count_periods(db_session) == 14

        response = await client.delete(f"/memberships/{membership.id}")
        assert response.status_code == 200
        assert response.json() == {
            "message": f"Membership with ID {membership.id} has been successfully deleted"
        }
        assert await count_periods(db_session) == 8

        data = (await client.get("/memberships")).json()
        assert [row["membership"]["id"] for row in data] == [other.id]

    @pytest.mark.asyncio
    async def test_delete_not_found(self, client: AsyncClient):
        """Test deleting a membership that does not exist."""
        response = await client.delete("/memberships/4242")
        assert response.status_code == 404
        assert "4242" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_ids_are_not_reused_after_delete(
        self, client: AsyncClient, make_membership
    ):
        """Test that new ids never collide with existing ones after a delete."""
        first = await make_membership(valid_from=date(2024, 7, 1))
        second = await make_membership(valid_from=date(2024, 7, 1))
        await client.delete(f"/memberships/{first.id}")

        response = await client.post("/memberships", json=GOLD_PLAN)
        assert response.status_code == 201
        assert response.json()["membership"]["id"] > second.id


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, client: AsyncClient):
        response = await client.get("/api/health")
        assert response.status_code == 200
        assert response.json() == {"code": 200, "message": "API is healthy."}
