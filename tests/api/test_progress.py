"""Participation, completion and the session user's lists."""

from httpx import AsyncClient

from tests.conftest import create_challenge, create_quest, register


class TestParticipation:
    async def test_full_journey(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        challenge = await create_challenge(client, quest["id"])

        joined = await client.post(
            f"/api/v1/quests/{quest['id']}/participate", json={"user_id": ann["id"]}, headers=ann["headers"]
        )
        assert joined.status_code == 201

        cleared = await client.post(
            f"/api/v1/challenges/{challenge['id']}/complete", json={"user_id": ann["id"]}, headers=ann["headers"]
        )
        assert cleared.status_code == 201

        quests = await client.get("/api/v1/me/participated_quests", headers=ann["headers"])
        assert quests.status_code == 200
        assert quests.json() == [quest["id"]]

        challenges = await client.get("/api/v1/me/completed_challenges", headers=ann["headers"])
        assert challenges.status_code == 200
        assert challenges.json() == [challenge["id"]]

    async def test_lists_start_empty(self, client: AsyncClient, ann: dict):
        quests = await client.get("/api/v1/me/participated_quests", headers=ann["headers"])
        challenges = await client.get("/api/v1/me/completed_challenges", headers=ann["headers"])
        assert quests.json() == []
        assert challenges.json() == []

    async def test_lists_keep_order(self, client: AsyncClient, ann: dict):
        ids = [(await create_quest(client, title=t))["id"] for t in ("a", "b", "c")]
        for quest_id in reversed(ids):
            response = await client.post(
                f"/api/v1/quests/{quest_id}/participate", json={"user_id": ann["id"]}, headers=ann["headers"]
            )
            assert response.status_code == 201

        response = await client.get("/api/v1/me/participated_quests", headers=ann["headers"])
        assert response.json() == list(reversed(ids))

    async def test_repeat_is_conflict(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        url = f"/api/v1/quests/{quest['id']}/participate"
        first = await client.post(url, json={"user_id": ann["id"]}, headers=ann["headers"])
        second = await client.post(url, json={"user_id": ann["id"]}, headers=ann["headers"])
        assert first.status_code == 201
        assert second.status_code == 409

    async def test_for_another_user_is_forbidden(self, client: AsyncClient, ann: dict):
        bob = await register(client, username="Bob", email="bob@x.io")
        quest = await create_quest(client)
        response = await client.post(
            f"/api/v1/quests/{quest['id']}/participate", json={"user_id": bob["id"]}, headers=ann["headers"]
        )
        assert response.status_code == 403

        bobs = await client.get("/api/v1/me/participated_quests", headers=bob["headers"])
        assert bobs.json() == []

    async def test_unknown_quest(self, client: AsyncClient, ann: dict):
        response = await client.post(
            "/api/v1/quests/does-not-exist/participate", json={"user_id": ann["id"]}, headers=ann["headers"]
        )
        assert response.status_code == 404

    async def test_malformed_payload(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        response = await client.post(
            f"/api/v1/quests/{quest['id']}/participate", json={"uid": ann["id"]}, headers=ann["headers"]
        )
        assert response.status_code == 400

    async def test_requires_session(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        response = await client.post(f"/api/v1/quests/{quest['id']}/participate", json={"user_id": ann["id"]})
        assert response.status_code == 401


class TestCompletion:
    async def test_unknown_challenge(self, client: AsyncClient, ann: dict):
        response = await client.post(
            "/api/v1/challenges/does-not-exist/complete", json={"user_id": ann["id"]}, headers=ann["headers"]
        )
        assert response.status_code == 404

    async def test_repeat_is_conflict(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        challenge = await create_challenge(client, quest["id"])
        url = f"/api/v1/challenges/{challenge['id']}/complete"
        assert (await client.post(url, json={"user_id": ann["id"]}, headers=ann["headers"])).status_code == 201
        assert (await client.post(url, json={"user_id": ann["id"]}, headers=ann["headers"])).status_code == 409

    async def test_quest_delete_drops_completion(self, client: AsyncClient, ann: dict):
        quest = await create_quest(client)
        challenge = await create_challenge(client, quest["id"])
        await client.post(
            f"/api/v1/challenges/{challenge['id']}/complete", json={"user_id": ann["id"]}, headers=ann["headers"]
        )
        await client.delete(f"/api/v1/quests/{quest['id']}")

        response = await client.get("/api/v1/me/completed_challenges", headers=ann["headers"])
        assert response.json() == []

    async def test_lists_require_session(self, client: AsyncClient):
        assert (await client.get("/api/v1/me/participated_quests")).status_code == 401
        assert (await client.get("/api/v1/me/completed_challenges")).status_code == 401
