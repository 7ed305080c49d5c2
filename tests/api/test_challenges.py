"""Challenge endpoints."""

from httpx import AsyncClient

from tests.conftest import create_challenge, create_quest


class TestCreateChallenge:
    async def test_create_and_find(self, client: AsyncClient):
        quest = await create_quest(client)
        challenge = await create_challenge(client, quest["id"])
        assert challenge["quest_id"] == quest["id"]
        assert challenge["stamp_name"] == "Golden"

        response = await client.get(f"/api/v1/challenges/{challenge['id']}")
        assert response.status_code == 200
        assert response.json() == challenge

    async def test_missing_quest(self, client: AsyncClient):
        response = await client.post("/api/v1/challenges", json={
            "name": "Orphan",
            "quest_id": "does-not-exist",
            "latitude": 0,
            "longitude": 0,
        })
        assert response.status_code == 404

    async def test_latitude_out_of_range(self, client: AsyncClient):
        quest = await create_quest(client)
        response = await client.post("/api/v1/challenges", json={
            "name": "Off the map",
            "quest_id": quest["id"],
            "latitude": 91,
            "longitude": 0,
        })
        assert response.status_code == 400

    async def test_find_missing(self, client: AsyncClient):
        response = await client.get("/api/v1/challenges/does-not-exist")
        assert response.status_code == 404


class TestFindByQuestId:
    async def test_in_creation_order(self, client: AsyncClient):
        quest = await create_quest(client)
        other = await create_quest(client, title="Other")
        names = ["first", "second", "third"]
        for name in names:
            await create_challenge(client, quest["id"], name=name)
        await create_challenge(client, other["id"], name="elsewhere")

        response = await client.get("/api/v1/challenges", params={"quest_id": quest["id"]})
        assert response.status_code == 200
        assert [c["name"] for c in response.json()] == names

    async def test_unknown_quest_is_empty(self, client: AsyncClient):
        response = await client.get("/api/v1/challenges", params={"quest_id": "does-not-exist"})
        assert response.status_code == 200
        assert response.json() == []

    async def test_quest_id_required(self, client: AsyncClient):
        response = await client.get("/api/v1/challenges")
        assert response.status_code == 400
