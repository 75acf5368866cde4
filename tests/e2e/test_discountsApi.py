"""
E2E tests for discount rule matching, application and administration.
"""

from __future__ import annotations

import uuid
from decimal import Decimal

import pytest

from tests.e2e.conftest import API, BULK_DISCOUNT_ID, CAPPED_DISCOUNT_ID


async def _applicable_names(client, **params) -> list[str]:
    resp = await client.get(f"{API}/discounts/applicable", params=params)
    assert resp.status_code == 200
    return [r["name"] for r in resp.json()]


class TestApplicable:

    @pytest.mark.asyncio
    async def test_min_sessions_gate(self, client):
        assert await _applicable_names(client, session_count=3) == ["Twenty Off"]
        assert await _applicable_names(client, session_count=5) == ["Bulk Five", "Twenty Off"]

    @pytest.mark.asyncio
    async def test_role_allow_list(self, client):
        names = await _applicable_names(client, session_count=5, user_role="mentor")
        assert names == ["Bulk Five"]

        names = await _applicable_names(client, session_count=5, user_role="siswa")
        assert names == ["Bulk Five", "Twenty Off"]

    @pytest.mark.asyncio
    async def test_inactive_rule_excluded(self, client):
        await client.post(f"{API}/discounts/{BULK_DISCOUNT_ID}/toggle")
        assert await _applicable_names(client, session_count=5) == ["Twenty Off"]


class TestCalculate:

    @pytest.mark.asyncio
    async def test_percentage_clamped(self, client):
        resp = await client.post(
            f"{API}/discounts/{CAPPED_DISCOUNT_ID}/calculate",
            json={"original_amount": "1000", "session_count": 1},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["discount_amount"]) == 50
        assert Decimal(body["final_amount"]) == 950
        assert body["rule_name"] == "Twenty Off"
        assert body["rule_type"] == "percentage"

    @pytest.mark.asyncio
    async def test_unknown_rule_gives_zero_discount(self, client):
        resp = await client.post(
            f"{API}/discounts/{uuid.uuid4()}/calculate",
            json={"original_amount": "750", "session_count": 2},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert Decimal(body["discount_amount"]) == 0
        assert Decimal(body["final_amount"]) == 750
        assert body["rule_name"] is None

    @pytest.mark.asyncio
    async def test_inactive_rule_gives_zero_discount(self, client):
        await client.post(f"{API}/discounts/{CAPPED_DISCOUNT_ID}/toggle")
        resp = await client.post(
            f"{API}/discounts/{CAPPED_DISCOUNT_ID}/calculate",
            json={"original_amount": "1000", "session_count": 1},
        )
        assert Decimal(resp.json()["discount_amount"]) == 0

    @pytest.mark.asyncio
    async def test_fixed_amount_floors_at_zero(self, client):
        resp = await client.post(
            f"{API}/discounts",
            json={"name": "Flat 500", "type": "fixed_amount", "value": "500"},
        )
        assert resp.status_code == 201
        rule_id = resp.json()["id"]

        resp = await client.post(
            f"{API}/discounts/{rule_id}/calculate",
            json={"original_amount": "300", "session_count": 1},
        )
        body = resp.json()
        assert Decimal(body["discount_amount"]) == 500
        assert Decimal(body["final_amount"]) == 0


class TestDiscountRuleAdmin:

    @pytest.mark.asyncio
    async def test_percentage_over_100_rejected(self, client):
        resp = await client.post(
            f"{API}/discounts",
            json={"name": "Too Much", "type": "percentage", "value": "150"},
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_inverted_window_rejected(self, client):
        resp = await client.post(
            f"{API}/discounts",
            json={
                "name": "Backwards",
                "type": "percentage",
                "value": "10",
                "valid_from": "2025-02-01T00:00:00Z",
                "valid_until": "2025-01-01T00:00:00Z",
            },
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_patch_and_list_by_type(self, client):
        resp = await client.patch(
            f"{API}/discounts/{BULK_DISCOUNT_ID}",
            json={"type": "fixed_amount", "value": "25000"},
        )
        assert resp.status_code == 200
        assert resp.json()["type"] == "fixed_amount"

        resp = await client.get(f"{API}/discounts", params={"type": "fixed_amount"})
        assert [r["id"] for r in resp.json()] == [str(BULK_DISCOUNT_ID)]

    @pytest.mark.asyncio
    async def test_null_for_required_fields_keeps_stored_values(self, client):
        resp = await client.patch(
            f"{API}/discounts/{BULK_DISCOUNT_ID}",
            json={"name": None, "type": None, "value": None, "min_sessions": None},
        )
        assert resp.status_code == 200
        body = resp.json()
        assert body["name"] == "Bulk Five"
        assert body["type"] == "percentage"
        assert Decimal(body["value"]) == 10
        assert body["min_sessions"] is None

    @pytest.mark.asyncio
    async def test_delete(self, client):
        resp = await client.delete(f"{API}/discounts/{CAPPED_DISCOUNT_ID}")
        assert resp.status_code == 204

        resp = await client.get(f"{API}/discounts/{CAPPED_DISCOUNT_ID}")
        assert resp.status_code == 404
