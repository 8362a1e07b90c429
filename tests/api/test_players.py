"""Tests for player API endpoints: seats and chip moves."""

import pytest
from httpx import AsyncClient

from pokerboard.models import User
from tests.api.conftest import create_user, login_headers, player_id_for


def player_url(game: dict, user: User, action: str = "") -> str:
    url = f"/api/v1/sessions/{game['id']}/players/{player_id_for(game, user)}"
    return f"{url}/{action}" if action else url


class TestAddPlayer:
    """Tests for POST /api/v1/sessions/{id}/players"""

    @pytest.mark.asyncio
    async def test_add_player(
        self, test_client: AsyncClient, test_db, auth_headers: dict, game_session: dict
    ):
        newcomer = await create_user(test_db, "Deniz", "deniz@example.com")

        response = await test_client.post(
            f"/api/v1/sessions/{game_session['id']}/players",
            json={"userId": newcomer.id, "initialBuyIn": 1500},
            headers=auth_headers,
        )

        assert response.status_code == 201
        result = response.json()
        assert result["userId"] == newcomer.id
        assert result["currentStack"] == 1500
        assert result["status"] == "ACTIVE"
        assert result["totalBuyIn"] == 1500
        assert [t["type"] for t in result["transactions"]] == ["BUY_IN"]

    @pytest.mark.asyncio
    async def test_buy_in_below_table_minimum(
        self, test_client: AsyncClient, test_db, auth_headers: dict, game_session: dict
    ):
        newcomer = await create_user(test_db, "Deniz", "deniz@example.com")

        response = await test_client.post(
            f"/api/v1/sessions/{game_session['id']}/players",
            json={"userId": newcomer.id, "initialBuyIn": 500},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLAYER_BUY_IN_TOO_LOW"
        assert "₺1.000" in response.json()["error"]["message"]

    @pytest.mark.asyncio
    async def test_already_active(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            f"/api/v1/sessions/{game_session['id']}/players",
            json={"userId": test_user2.id, "initialBuyIn": 1000},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLAYER_ALREADY_ACTIVE"

    @pytest.mark.asyncio
    async def test_unknown_user(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict
    ):
        response = await test_client.post(
            f"/api/v1/sessions/{game_session['id']}/players",
            json={"userId": "missing", "initialBuyIn": 1000},
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "USER_NOT_FOUND"

    @pytest.mark.asyncio
    async def test_only_host_can_seat(
        self,
        test_client: AsyncClient,
        test_db,
        auth_headers2: dict,
        game_session: dict,
    ):
        newcomer = await create_user(test_db, "Deniz", "deniz@example.com")

        response = await test_client.post(
            f"/api/v1/sessions/{game_session['id']}/players",
            json={"userId": newcomer.id, "initialBuyIn": 1000},
            headers=auth_headers2,
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "SESSION_FORBIDDEN"


class TestPlayerDetail:
    """Tests for GET /api/v1/sessions/{id}/players/{player_id}"""

    @pytest.mark.asyncio
    async def test_player_sees_own_seat(
        self,
        test_client: AsyncClient,
        auth_headers: dict,
        auth_headers2: dict,
        game_session: dict,
        test_user2: User,
    ):
        await test_client.post(
            player_url(game_session, test_user2, "add-chips"),
            json={"amount": 500},
            headers=auth_headers,
        )

        response = await test_client.get(player_url(game_session, test_user2), headers=auth_headers2)

        assert response.status_code == 200
        result = response.json()
        assert result["session"]["id"] == game_session["id"]
        assert result["totalBuyIn"] == 1500
        assert [t["type"] for t in result["transactions"]] == ["REBUY", "BUY_IN"]

    @pytest.mark.asyncio
    async def test_other_player_is_forbidden(
        self,
        test_client: AsyncClient,
        test_db,
        game_session: dict,
        test_user3: User,
    ):
        headers = await login_headers(test_db, test_user3)
        veli = next(p for p in game_session["participants"] if p["user"]["name"] == "Veli")

        response = await test_client.get(
            f"/api/v1/sessions/{game_session['id']}/players/{veli['id']}",
            headers=headers,
        )

        assert response.status_code == 403
        assert response.json()["error"]["code"] == "PLAYER_FORBIDDEN"

    @pytest.mark.asyncio
    async def test_player_from_other_session(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict
    ):
        response = await test_client.get(
            f"/api/v1/sessions/{game_session['id']}/players/missing",
            headers=auth_headers,
        )

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "PLAYER_NOT_FOUND"


class TestChips:
    """Tests for add-chips, chips and cashout"""

    @pytest.mark.asyncio
    async def test_add_chips_message(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "add-chips"),
            json={"amount": 500},
            headers=auth_headers,
        )

        assert response.status_code == 200
        result = response.json()
        assert result["message"] == "Added ₺500 to Veli's stack. New total: ₺1.500"
        assert result["player"]["currentStack"] == 1500

    @pytest.mark.asyncio
    async def test_add_chips_requires_positive_amount(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "add-chips"),
            json={"amount": 0},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("action", ["add-chips", "chips", "cashout"])
    @pytest.mark.parametrize("literal", ["NaN", "Infinity", "-Infinity"])
    async def test_non_finite_amount_is_rejected(
        self,
        test_client: AsyncClient,
        auth_headers: dict,
        game_session: dict,
        test_user2: User,
        action: str,
        literal: str,
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, action),
            content=f'{{"amount": {literal}}}',
            headers={**auth_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 422

        detail = await test_client.get(player_url(game_session, test_user2), headers=auth_headers)
        assert detail.json()["currentStack"] == 1000
        assert [t["type"] for t in detail.json()["transactions"]] == ["BUY_IN"]

    @pytest.mark.asyncio
    async def test_player_buys_own_chips(
        self, test_client: AsyncClient, auth_headers2: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "chips"),
            json={"amount": 250, "type": "BUY_IN"},
            headers=auth_headers2,
        )

        assert response.status_code == 200
        result = response.json()
        assert result["message"] == "Chips added successfully"
        assert result["player"]["currentStack"] == 1250
        assert sorted(t["type"] for t in result["player"]["transactions"]) == ["BUY_IN", "BUY_IN"]

    @pytest.mark.asyncio
    async def test_chips_rejects_cash_out_type(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "chips"),
            json={"amount": 250, "type": "CASH_OUT"},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_TRANSACTION_TYPE"

    @pytest.mark.asyncio
    async def test_cash_out_more_than_stack(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "cashout"),
            json={"amount": 1000.5},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLAYER_INSUFFICIENT_CHIPS"

    @pytest.mark.asyncio
    async def test_partial_then_full_cash_out(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        partial = await test_client.post(
            player_url(game_session, test_user2, "cashout"),
            json={"amount": 400},
            headers=auth_headers,
        )
        assert partial.status_code == 200
        assert partial.json()["message"] == "Cash out successful"
        assert partial.json()["player"]["currentStack"] == 600
        assert partial.json()["player"]["status"] == "ACTIVE"

        full = await test_client.post(
            player_url(game_session, test_user2, "cashout"),
            json={"amount": 600},
            headers=auth_headers,
        )
        player = full.json()["player"]
        assert player["currentStack"] == 0
        assert player["status"] == "CASHED_OUT"
        assert player["leftAt"] is not None
        assert player["cashedOut"] == 1000
        assert player["profitLoss"] == 0

        # No more moves on a closed seat
        again = await test_client.post(
            player_url(game_session, test_user2, "add-chips"),
            json={"amount": 100},
            headers=auth_headers,
        )
        assert again.status_code == 400
        assert again.json()["error"]["code"] == "PLAYER_NOT_ACTIVE"


class TestLeaveAndRejoin:
    """Tests for leave and rejoin"""

    @pytest.mark.asyncio
    async def test_leave_with_profit(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "leave"),
            json={"leaveAmount": 1750},
            headers=auth_headers,
        )

        assert response.status_code == 200
        result = response.json()
        assert result["message"] == "Veli left the game with ₺1.750 (profit: ₺750)"
        assert result["player"]["status"] == "CASHED_OUT"
        assert result["player"]["currentStack"] == 1750
        assert result["player"]["profitLoss"] == 750

    @pytest.mark.asyncio
    async def test_leave_with_loss(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "leave"),
            json={"leaveAmount": 200},
            headers=auth_headers,
        )

        assert response.json()["message"] == "Veli left the game with ₺200 (loss: ₺800)"

    @pytest.mark.asyncio
    async def test_last_player_must_balance(
        self,
        test_client: AsyncClient,
        auth_headers: dict,
        game_session: dict,
        test_user: User,
        test_user2: User,
        test_user3: User,
    ):
        await test_client.post(
            player_url(game_session, test_user, "leave"),
            json={"leaveAmount": 1800},
            headers=auth_headers,
        )
        await test_client.post(
            player_url(game_session, test_user2, "leave"),
            json={"leaveAmount": 700},
            headers=auth_headers,
        )

        wrong = await test_client.post(
            player_url(game_session, test_user3, "leave"),
            json={"leaveAmount": 600},
            headers=auth_headers,
        )
        assert wrong.status_code == 400
        body = wrong.json()
        assert body["error"]["code"] == "SESSION_UNBALANCED"
        assert body["error"]["details"]["required_cash_out"] == 500

        right = await test_client.post(
            player_url(game_session, test_user3, "leave"),
            json={"leaveAmount": 500},
            headers=auth_headers,
        )
        assert right.status_code == 200

    @pytest.mark.asyncio
    async def test_negative_leave_amount(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "leave"),
            json={"leaveAmount": -1},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "INVALID_AMOUNT"

    @pytest.mark.asyncio
    async def test_rejoin_with_rebuy(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        await test_client.post(
            player_url(game_session, test_user2, "leave"),
            json={"leaveAmount": 0},
            headers=auth_headers,
        )

        response = await test_client.post(
            player_url(game_session, test_user2, "rejoin"),
            json={"additionalBuyIn": 1000},
            headers=auth_headers,
        )

        assert response.status_code == 200
        result = response.json()
        assert result["message"] == "Veli rejoined the game with an additional ₺1.000"
        assert result["player"]["status"] == "ACTIVE"
        assert result["player"]["leftAt"] is None
        assert result["player"]["currentStack"] == 1000
        assert result["player"]["totalBuyIn"] == 2000

    @pytest.mark.asyncio
    async def test_rejoin_active_player(
        self, test_client: AsyncClient, auth_headers: dict, game_session: dict, test_user2: User
    ):
        response = await test_client.post(
            player_url(game_session, test_user2, "rejoin"),
            json={},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "PLAYER_ALREADY_ACTIVE"
