"""End-to-end trading flow against PostgreSQL: buy, sell, close, recalculate.

Prices come from the mock table (QUOTE_SERVICE_URL unset), so assertions are
written against the fill prices each response reports.
"""

from collections.abc import Awaitable, Callable

import pytest
from httpx import AsyncClient

pytestmark = pytest.mark.asyncio(loop_scope="session")

NewAccount = Callable[..., Awaitable[dict[str, str]]]
START = 10_000_000


async def _order(
    client: AsyncClient, headers: dict[str, str], side: str, quantity: int, symbol: str = "AAPL"
) -> dict:
    resp = await client.post(
        "/api/v1/orders",
        json={"symbol": symbol, "side": side, "order_type": "market", "quantity": quantity},
        headers=headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]


class TestTrading:
    async def test_buy_then_sell_updates_cash_and_pnl(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        headers = await new_account()
        buy = await _order(client, headers, "buy", 10)
        buy_price = buy["order"]["filled_price_cents"]
        assert buy["available_balance_cents"] == START - 10 * buy_price
        assert buy["position"]["quantity"] == 10

        sell = await _order(client, headers, "sell", 10)
        sell_price = sell["order"]["filled_price_cents"]
        assert sell["order"]["realized_pnl_cents"] == 10 * (sell_price - buy_price)
        assert sell["position"] is None
        assert sell["available_balance_cents"] == START + 10 * (sell_price - buy_price)

        balance = (await client.get("/api/v1/account/balance", headers=headers)).json()["data"]
        assert balance["total_pnl_cents"] == 10 * (sell_price - buy_price)

        positions = (await client.get("/api/v1/positions", headers=headers)).json()["data"]
        assert positions["total"] == 0

    async def test_oversell_is_rejected(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        headers = await new_account()
        await _order(client, headers, "buy", 3)
        resp = await client.post(
            "/api/v1/orders",
            json={"symbol": "AAPL", "side": "sell", "quantity": 5},
            headers=headers,
        )
        assert resp.status_code == 400
        assert resp.json()["message"] == (
            "Insufficient position to sell. You have 3 shares, "
            "but trying to sell 5 shares."
        )

    async def test_close_half_position(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        headers = await new_account()
        await _order(client, headers, "buy", 10, "MSFT")
        resp = await client.delete(
            "/api/v1/positions", params={"symbol": "MSFT", "percentage": 50}, headers=headers
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["remaining_quantity"] == 5

    async def test_recalculation_is_idempotent(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        headers = await new_account()
        await _order(client, headers, "buy", 4, "TSLA")
        await _order(client, headers, "sell", 1, "TSLA")

        first = (await client.post("/api/v1/pnl/recalculate/me", headers=headers)).json()["data"]
        second = (await client.post("/api/v1/pnl/recalculate/me", headers=headers)).json()["data"]
        assert first["cash_drift_cents"] == 0
        assert first["available_balance_cents"] == second["available_balance_cents"]
        assert first["total_pnl_cents"] == second["total_pnl_cents"]
        assert first["positions"] == second["positions"] == 1

    async def test_creator_adjustment_and_global_recalc(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        trader = await new_account()
        creator = await new_account("creator")
        me = (await client.get("/api/v1/account/balance", headers=trader)).json()["data"]

        adjust = await client.post(
            "/api/v1/account/balance/adjust",
            json={"user_id": me["user_id"], "action": "add", "amount_cents": 50_000},
            headers=creator,
        )
        assert adjust.status_code == 200
        assert adjust.json()["data"]["available_balance_cents"] == START + 50_000

        resp = await client.post("/api/v1/pnl/recalculate", headers=creator)
        assert resp.status_code == 200
        mine = [r for r in resp.json()["data"]["results"] if r["user_id"] == me["user_id"]]
        assert mine[0]["available_balance_cents"] == START + 50_000
        assert mine[0]["cash_drift_cents"] == 0

    async def test_creator_cannot_place_orders(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        creator = await new_account("creator")
        resp = await client.post(
            "/api/v1/orders", json={"symbol": "AAPL", "side": "buy", "quantity": 1},
            headers=creator,
        )
        assert resp.status_code == 403

    async def test_performance_history(
        self, client: AsyncClient, new_account: NewAccount
    ) -> None:
        headers = await new_account()
        await _order(client, headers, "buy", 2)
        resp = await client.get(
            "/api/v1/performance", params={"period": "7d", "granularity": "daily"}, headers=headers
        )
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert len(data["history"]) == 8
        assert data["history"][0]["total_value"] == START
