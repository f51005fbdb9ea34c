"""Tests for history listing and favorite toggling endpoints."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from fastapi import status

from menu_lens.models import MenuAnalysis, ProductAnalysis

ORIGIN = "http://localhost:5173"
OTHER_SID = "1600000000000-bbbbbbbb"


@pytest.fixture()
def sid(verifier, session_token) -> str:
    return verifier.require(session_token, ORIGIN).sid


def _add(db_session, model, session_id: str, minutes_ago: int, favorite: bool = False, **items):
    created = datetime(2026, 1, 1, tzinfo=UTC) - timedelta(minutes=minutes_ago)
    record = model(session_id=session_id, is_favorite=favorite, created_at=created, updated_at=created, **items)
    db_session.add(record)
    db_session.commit()
    return record


class TestHistory:
    def test_lists_only_own_records(self, client, auth_headers, db_session, sid) -> None:
        newer = _add(db_session, MenuAnalysis, sid, 1, menu_items=[{"name": "寿司"}])
        older = _add(db_session, MenuAnalysis, sid, 10, menu_items=[])
        _add(db_session, MenuAnalysis, OTHER_SID, 0, menu_items=[])
        product = _add(db_session, ProductAnalysis, sid, 3, product_items=[{"name": "煎餅"}])

        response = client.get("/api/v1/history", headers=auth_headers)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body["success"] is True
        assert [m["id"] for m in body["data"]["menus"]] == [newer.id, older.id]
        assert body["data"]["menus"][0]["menu_items"] == [{"name": "寿司"}]
        assert [p["id"] for p in body["data"]["products"]] == [product.id]

    def test_type_and_favorite_filters(self, client, auth_headers, db_session, sid) -> None:
        favorite = _add(db_session, ProductAnalysis, sid, 1, favorite=True, product_items=[])
        _add(db_session, ProductAnalysis, sid, 2, product_items=[])
        _add(db_session, MenuAnalysis, sid, 3, favorite=True, menu_items=[])

        response = client.get(
            "/api/v1/history",
            params={"type": "product", "favorites": "true"},
            headers=auth_headers,
        )

        data = response.json()["data"]
        assert data["menus"] == []
        assert [p["id"] for p in data["products"]] == [favorite.id]

    def test_limit_is_capped(self, client, auth_headers, db_session, sid) -> None:
        for minutes in range(3):
            _add(db_session, MenuAnalysis, sid, minutes, menu_items=[])

        limited = client.get("/api/v1/history", params={"limit": 2}, headers=auth_headers)
        assert len(limited.json()["data"]["menus"]) == 2

        capped = client.get("/api/v1/history", params={"limit": 1000}, headers=auth_headers)
        assert capped.status_code == status.HTTP_200_OK
        assert len(capped.json()["data"]["menus"]) == 3

    def test_invalid_type_is_rejected(self, client, auth_headers) -> None:
        response = client.get("/api/v1/history", params={"type": "drinks"}, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert "error" in response.json()

    def test_explicit_session_id_must_match_token(self, client, auth_headers, sid) -> None:
        ok = client.get("/api/v1/history", params={"sessionId": sid}, headers=auth_headers)
        assert ok.status_code == status.HTTP_200_OK

        other = client.get("/api/v1/history", params={"sessionId": OTHER_SID}, headers=auth_headers)
        assert other.status_code == status.HTTP_403_FORBIDDEN
        assert other.json() == {"error": "Not authorized"}


class TestFavorites:
    def test_toggle_own_record(self, client, auth_headers, db_session, sid) -> None:
        record = _add(db_session, MenuAnalysis, sid, 1, menu_items=[])

        response = client.post(
            "/api/v1/favorites",
            json={"id": record.id, "type": "menu", "isFavorite": True},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True, "isFavorite": True}
        db_session.refresh(record)
        assert record.is_favorite is True

    def test_other_sessions_record_is_forbidden(self, client, auth_headers, db_session) -> None:
        record = _add(db_session, ProductAnalysis, OTHER_SID, 1, product_items=[])

        response = client.post(
            "/api/v1/favorites",
            json={"id": record.id, "type": "product", "isFavorite": True},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json() == {"error": "Not authorized"}

    def test_claimed_session_id_must_match_token(self, client, auth_headers, db_session, sid) -> None:
        record = _add(db_session, MenuAnalysis, sid, 1, menu_items=[])

        response = client.post(
            "/api/v1/favorites",
            json={"id": record.id, "type": "menu", "isFavorite": True, "sessionId": OTHER_SID},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_unknown_record(self, client, auth_headers) -> None:
        response = client.post(
            "/api/v1/favorites",
            json={"id": "missing", "type": "menu", "isFavorite": False},
            headers=auth_headers,
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.parametrize(
        "body",
        [
            {"id": "x", "type": "drink", "isFavorite": True},
            {"id": "x", "type": "menu", "isFavorite": "yes"},
            {"type": "menu", "isFavorite": True},
        ],
    )
    def test_invalid_body(self, client, auth_headers, body) -> None:
        response = client.post("/api/v1/favorites", json=body, headers=auth_headers)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
