"""Tests for chat list, history, avatar and send routes."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from zapcrm.api.factory import create_app
from zapcrm.whatsapp.evolution_client import EvolutionAPIError
from zapcrm.whatsapp.models import Contact, Message

TEST_JID = "5511999998888@s.whatsapp.net"


@pytest.fixture
def client(evolution_config):
    return TestClient(create_app(evolution_config))


class TestListChats:
    def test_returns_contacts(self, client, evolution_config):
        contact = Contact(
            id=TEST_JID,
            name="Ana",
            number="5511999998888",
            last_message="Olá",
            timestamp_raw=1700000000,
            merged_ids=(TEST_JID,),
        )
        with patch("zapcrm.whatsapp.evolution_client.fetch_chats", return_value=[contact]) as mock_fetch:
            response = client.get("/chats")

        assert response.status_code == 200
        body = response.json()["contacts"]
        assert body[0]["id"] == TEST_JID
        assert body[0]["name"] == "Ana"
        assert body[0]["merged_ids"] == [TEST_JID]
        mock_fetch.assert_called_once_with(evolution_config)


class TestListMessages:
    def test_returns_messages(self, client, evolution_config):
        message = Message(
            id="M1",
            text="oi",
            sender="them",
            timestamp=datetime.fromtimestamp(1700000000, timezone.utc),
            status="read",
            from_uid=TEST_JID,
        )
        with patch("zapcrm.whatsapp.evolution_client.fetch_messages", return_value=[message]) as mock_fetch:
            response = client.get(f"/chats/{TEST_JID}/messages", params={"page": 2, "limit": 20})

        assert response.status_code == 200
        body = response.json()["messages"]
        assert body == [
            {
                "id": "M1",
                "text": "oi",
                "sender": "them",
                "timestamp": "2023-11-14T22:13:20+00:00",
                "timestamp_ms": 1700000000000,
                "status": "read",
                "from_uid": TEST_JID,
            }
        ]
        mock_fetch.assert_called_once_with(evolution_config, TEST_JID, 2, 20)

    def test_default_page_size(self, client, evolution_config):
        with patch("zapcrm.whatsapp.evolution_client.fetch_messages", return_value=[]) as mock_fetch:
            client.get(f"/chats/{TEST_JID}/messages")
        mock_fetch.assert_called_once_with(evolution_config, TEST_JID, 1, 50)

    def test_invalid_page_is_422(self, client):
        assert client.get(f"/chats/{TEST_JID}/messages", params={"page": 0}).status_code == 422

    def test_gateway_error_is_502(self, client):
        with patch(
            "zapcrm.whatsapp.evolution_client.fetch_messages",
            side_effect=EvolutionAPIError("Evolution API returned HTTP 500", 500),
        ):
            response = client.get(f"/chats/{TEST_JID}/messages")

        assert response.status_code == 502
        assert response.json()["detail"] == "Evolution API returned HTTP 500"


class TestAvatar:
    def test_returns_url_or_null(self, client):
        with patch("zapcrm.whatsapp.evolution_client.fetch_profile_picture_url", return_value=None):
            response = client.get(f"/chats/{TEST_JID}/avatar")

        assert response.status_code == 200
        assert response.json() == {"avatar_url": None}


class TestSendMessage:
    def test_sends(self, client, evolution_config):
        with patch(
            "zapcrm.whatsapp.evolution_client.send_text",
            return_value={"key": {"id": "ABC"}},
        ) as mock_send:
            response = client.post("/messages", json={"number": TEST_JID, "text": "Olá"})

        assert response.status_code == 200
        assert response.json() == {"status": "sent", "result": {"key": {"id": "ABC"}}}
        mock_send.assert_called_once_with(
            evolution_config, TEST_JID, "Olá", delay=None, link_preview=True
        )

    def test_empty_text_is_422(self, client):
        assert client.post("/messages", json={"number": TEST_JID, "text": ""}).status_code == 422

    def test_gateway_error_is_502(self, client):
        with patch(
            "zapcrm.whatsapp.evolution_client.send_text",
            side_effect=EvolutionAPIError("number invalid", 400),
        ):
            response = client.post("/messages", json={"number": "123", "text": "x"})

        assert response.status_code == 502
        assert response.json()["detail"] == "number invalid"


class TestConnectInstance:
    def test_returns_gateway_payload(self, client):
        with patch(
            "zapcrm.whatsapp.evolution_client.connect_instance",
            return_value={"instance": {"state": "open"}},
        ):
            response = client.post("/instance/connect")

        assert response.status_code == 200
        assert response.json() == {"result": {"instance": {"state": "open"}}}
