import pytest
from httpx import AsyncClient
from fastapi import status

from monadssenger.core.config import settings


class TestMessageAPI:
    """메시지 API 테스트"""

    @pytest.mark.asyncio
    async def test_send_message_success(self, client: AsyncClient, message_data):
        """메시지 전송 API 성공 테스트"""
        response = await client.post("/messages", json=message_data)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()["message"]
        assert data["room"] == "lobby"
        assert data["username"] == message_data["username"]
        assert data["user_color"] == message_data["user_color"]
        assert data["message"] == message_data["message"]
        assert isinstance(data["id"], str)
        assert "created_at" in data

    @pytest.mark.asyncio
    async def test_send_message_without_room_uses_lobby(self, client: AsyncClient, message_data):
        """room 생략 시 lobby에 저장"""
        del message_data["room"]

        response = await client.post("/messages", json=message_data)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"]["room"] == "lobby"

        listed = await client.get("/messages", params={"room": "lobby"})
        assert [m["message"] for m in listed.json()["messages"]] == ["gm frens"]

    @pytest.mark.asyncio
    async def test_send_message_is_stored_verbatim(self, client: AsyncClient, message_data):
        """서버는 텍스트를 가공하지 않음"""
        message_data["message"] = "gm :rocket:"

        response = await client.post("/messages", json=message_data)

        assert response.json()["message"]["message"] == "gm :rocket:"

    @pytest.mark.asyncio
    async def test_send_message_missing_fields(self, client: AsyncClient):
        """필수 필드 누락 시 400"""
        response = await client.post("/messages", json={"room": "lobby", "message": "hi"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["error"] == "validation_error"
        assert data["message"] == "Missing required fields"
        fields = {error["field"] for error in data["validation_errors"]}
        assert fields == {"username", "user_color"}

    @pytest.mark.asyncio
    async def test_send_empty_message(self, client: AsyncClient, message_data):
        """빈 메시지 전송 실패 테스트"""
        message_data["message"] = ""

        response = await client.post("/messages", json=message_data)

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert [e["field"] for e in response.json()["validation_errors"]] == ["message"]

    @pytest.mark.asyncio
    async def test_send_whitespace_message_is_accepted(self, client: AsyncClient, message_data):
        """공백만 있는 메시지는 빈 값이 아니므로 그대로 저장"""
        message_data["message"] = "   "

        response = await client.post("/messages", json=message_data)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"]["message"] == "   "

    @pytest.mark.asyncio
    async def test_send_message_with_long_username(self, client: AsyncClient, message_data):
        """이름/색상 길이는 제한하지 않음"""
        message_data["username"] = "A" * 300
        message_data["user_color"] = "#" + "f" * 100

        response = await client.post("/messages", json=message_data)

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["message"]["username"] == "A" * 300

    @pytest.mark.asyncio
    async def test_message_length_limit(self, client: AsyncClient, message_data):
        """1000자는 허용, 1001자는 거부"""
        message_data["message"] = "a" * 1000
        response = await client.post("/messages", json=message_data)
        assert response.status_code == status.HTTP_200_OK

        message_data["message"] = "a" * 1001
        response = await client.post("/messages", json=message_data)
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["message"] == "message is too long"

    @pytest.mark.asyncio
    async def test_malformed_json(self, client: AsyncClient):
        """JSON 파싱 실패 시 400"""
        response = await client.post(
            "/messages",
            content="{not json",
            headers={"Content-Type": "application/json"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error"] == "validation_error"

    @pytest.mark.asyncio
    async def test_get_messages_success(self, client: AsyncClient, message_data):
        """메시지 목록은 오래된 순"""
        for text in ["first", "second", "third"]:
            await client.post("/messages", json={**message_data, "message": text})

        response = await client.get("/messages", params={"room": "lobby"})

        assert response.status_code == status.HTTP_200_OK
        messages = response.json()["messages"]
        assert [m["message"] for m in messages] == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_get_messages_with_limit_returns_most_recent(self, client: AsyncClient, message_data):
        """limit개의 최근 메시지만 반환"""
        for i in range(5):
            await client.post("/messages", json={**message_data, "message": f"msg {i}"})

        response = await client.get("/messages", params={"room": "lobby", "limit": 2})

        assert [m["message"] for m in response.json()["messages"]] == ["msg 3", "msg 4"]

    @pytest.mark.asyncio
    async def test_get_messages_room_isolation(self, client: AsyncClient, message_data):
        """채팅방 간 메시지 분리"""
        await client.post("/messages", json={**message_data, "room": "dev", "message": "dev only"})
        await client.post("/messages", json={**message_data, "room": "bnb", "message": "bnb only"})

        dev = await client.get("/messages", params={"room": "dev"})
        usa = await client.get("/messages", params={"room": "usa"})

        assert [m["message"] for m in dev.json()["messages"]] == ["dev only"]
        assert usa.json()["messages"] == []

    @pytest.mark.asyncio
    async def test_get_messages_non_integer_limit(self, client: AsyncClient):
        """정수가 아닌 limit 값은 400"""
        response = await client.get("/messages", params={"limit": "abc"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_get_messages_non_positive_limit(self, client: AsyncClient, message_data):
        """0 이하의 limit은 빈 목록"""
        await client.post("/messages", json=message_data)

        for limit in ["0", "-1"]:
            response = await client.get("/messages", params={"limit": limit})
            assert response.status_code == status.HTTP_200_OK, limit
            assert response.json()["messages"] == []

    @pytest.mark.asyncio
    async def test_get_messages_limit_is_capped(self, client: AsyncClient, message_data, monkeypatch):
        """최대값을 넘는 limit은 최대값으로 잘림"""
        monkeypatch.setattr(settings, "message_list_max_limit", 2)
        for i in range(3):
            await client.post("/messages", json={**message_data, "message": f"msg {i}"})

        response = await client.get("/messages", params={"limit": 2000})

        assert response.status_code == status.HTTP_200_OK
        assert [m["message"] for m in response.json()["messages"]] == ["msg 1", "msg 2"]

    @pytest.mark.asyncio
    async def test_response_has_request_id(self, client: AsyncClient):
        """요청 ID 헤더 전달"""
        response = await client.get("/messages", headers={"X-Request-ID": "req-123"})

        assert response.headers["X-Request-ID"] == "req-123"
