import pytest
from datetime import timedelta
from httpx import AsyncClient
from fastapi import status

from monadssenger.utils.time_utils import utcnow


class TestTypingAPI:
    """타이핑 상태 API 테스트"""

    @pytest.mark.asyncio
    async def test_update_typing_success(self, client: AsyncClient, typing_data):
        """타이핑 상태 갱신 후 목록에 표시"""
        response = await client.post("/typing", json=typing_data)

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"success": True}

        listed = await client.get("/typing", params={"room": "lobby"})
        typing = listed.json()["typing"]
        assert len(typing) == 1
        assert typing[0]["username"] == "Ape42"
        assert typing[0]["user_color"] == "#ff8800"
        assert "updated_at" in typing[0]

    @pytest.mark.asyncio
    async def test_update_typing_is_upsert(self, client: AsyncClient, typing_data):
        """같은 사용자의 반복 갱신은 한 행"""
        await client.post("/typing", json=typing_data)
        await client.post("/typing", json={**typing_data, "user_color": "#00ff00"})

        typing = (await client.get("/typing", params={"room": "lobby"})).json()["typing"]

        assert len(typing) == 1
        assert typing[0]["user_color"] == "#00ff00"

    @pytest.mark.asyncio
    async def test_delete_typing(self, client: AsyncClient, typing_data):
        """타이핑 상태 삭제"""
        await client.post("/typing", json=typing_data)

        response = await client.delete("/typing", params={"room": "lobby", "username": "Ape42"})

        assert response.status_code == status.HTTP_200_OK
        assert (await client.get("/typing", params={"room": "lobby"})).json()["typing"] == []

    @pytest.mark.asyncio
    async def test_delete_typing_without_record(self, client: AsyncClient):
        """없는 상태 삭제도 성공"""
        response = await client.delete("/typing", params={"room": "lobby", "username": "Nobody"})

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["success"] is True

    @pytest.mark.asyncio
    async def test_update_typing_missing_fields(self, client: AsyncClient):
        """필수 필드 누락 시 400"""
        response = await client.post("/typing", json={"room": "lobby", "username": "Ape42"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        fields = [error["field"] for error in response.json()["validation_errors"]]
        assert fields == ["user_color"]

    @pytest.mark.asyncio
    async def test_delete_typing_missing_username(self, client: AsyncClient):
        """username 없이 삭제 요청 시 400"""
        response = await client.delete("/typing", params={"room": "lobby"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    @pytest.mark.asyncio
    async def test_typing_room_isolation(self, client: AsyncClient, typing_data):
        """다른 채팅방의 타이핑 상태는 보이지 않음"""
        await client.post("/typing", json={**typing_data, "room": "dev"})

        lobby = await client.get("/typing", params={"room": "lobby"})
        dev = await client.get("/typing", params={"room": "dev"})

        assert lobby.json()["typing"] == []
        assert len(dev.json()["typing"]) == 1

    @pytest.mark.asyncio
    async def test_typing_expires_after_ttl(self, client: AsyncClient, chat_store, typing_data):
        """10초가 지난 타이핑 상태는 목록에서 제외"""
        await client.post("/typing", json=typing_data)

        assert len(await chat_store.list_active_typing("lobby", now=utcnow() + timedelta(seconds=9))) == 1
        assert await chat_store.list_active_typing("lobby", now=utcnow() + timedelta(seconds=11)) == []
