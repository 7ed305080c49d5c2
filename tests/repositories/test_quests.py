"""Quest and challenge repository behaviour, shared by every backend."""

import pytest

from questlog.challenges.schemas import CreateChallenge
from questlog.errors import NotFoundError
from questlog.quests.schemas import CreateQuest, Difficulty, UpdateQuest
from questlog.repositories.base import Repositories


def _challenge(quest_id: str, name: str = "Kinkaku-ji", **extra) -> CreateChallenge:
    return CreateChallenge(
        name=name,
        description="The golden pavilion",
        quest_id=quest_id,
        latitude=35.0394,
        longitude=135.7292,
        **extra,
    )


class TestQuestCrud:
    async def test_create_then_find(self, repos: Repositories):
        created = await repos.quests.create(
            CreateQuest(title="Temple Run", description="Visit temples", price=300, difficulty=Difficulty.HARD)
        )
        found = await repos.quests.find(created.id)
        assert found == created
        assert found.difficulty is Difficulty.HARD
        assert found.price == 300
        assert found.num_participate == 0
        assert found.num_clear == 0
        assert found.challenges == []

    async def test_repeated_find_is_stable(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q", description="same twice"))
        await repos.challenges.create(_challenge(quest.id, name="a"))
        await repos.challenges.create(_challenge(quest.id, name="b"))

        first = await repos.quests.find(quest.id)
        second = await repos.quests.find(quest.id)
        assert first == second
        assert [c.name for c in second.challenges] == ["a", "b"]

    async def test_find_missing(self, repos: Repositories):
        with pytest.raises(NotFoundError):
            await repos.quests.find("does-not-exist")

    async def test_all_empty(self, repos: Repositories):
        assert await repos.quests.all() == []

    async def test_all_in_insertion_order_with_challenges(self, repos: Repositories):
        first = await repos.quests.create(CreateQuest(title="First"))
        second = await repos.quests.create(CreateQuest(title="Second"))
        c1 = await repos.challenges.create(_challenge(second.id, name="a"))
        c2 = await repos.challenges.create(_challenge(second.id, name="b"))

        quests = await repos.quests.all()
        assert [q.id for q in quests] == [first.id, second.id]
        assert quests[0].challenges == []
        assert quests[1].challenges == [c1, c2]

    async def test_partial_update_keeps_other_fields(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Old", description="keep me", price=5))
        updated = await repos.quests.update(quest.id, UpdateQuest(title="New"))
        assert updated.title == "New"
        assert updated.description == "keep me"
        assert updated.price == 5
        assert await repos.quests.find(quest.id) == updated

    async def test_update_difficulty(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        updated = await repos.quests.update(quest.id, UpdateQuest(difficulty=Difficulty.EASY, num_clear=3))
        assert updated.difficulty is Difficulty.EASY
        assert updated.num_clear == 3

    async def test_update_keeps_challenges(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        challenge = await repos.challenges.create(_challenge(quest.id))
        updated = await repos.quests.update(quest.id, UpdateQuest(price=10))
        assert updated.challenges == [challenge]

    async def test_update_missing(self, repos: Repositories):
        with pytest.raises(NotFoundError):
            await repos.quests.update("does-not-exist", UpdateQuest(title="x"))

    async def test_delete_removes_challenges(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        challenge = await repos.challenges.create(_challenge(quest.id))
        await repos.quests.delete(quest.id)

        with pytest.raises(NotFoundError):
            await repos.quests.find(quest.id)
        with pytest.raises(NotFoundError):
            await repos.challenges.find(challenge.id)
        assert await repos.challenges.find_by_quest_id(quest.id) == []
        assert await repos.quests.all() == []

    async def test_delete_missing(self, repos: Repositories):
        with pytest.raises(NotFoundError):
            await repos.quests.delete("does-not-exist")


class TestChallenges:
    async def test_create_then_find(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        created = await repos.challenges.create(
            _challenge(quest.id, stamp_name="Golden", flavor_text="Shines")
        )
        found = await repos.challenges.find(created.id)
        assert found == created
        assert found.stamp_name == "Golden"
        assert found.stamp_image_color is None

    async def test_create_for_missing_quest(self, repos: Repositories):
        with pytest.raises(NotFoundError):
            await repos.challenges.create(_challenge("does-not-exist"))

    async def test_find_missing(self, repos: Repositories):
        with pytest.raises(NotFoundError):
            await repos.challenges.find("does-not-exist")

    async def test_find_by_quest_id_in_order(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        other = await repos.quests.create(CreateQuest(title="Other"))
        names = ["a", "b", "c"]
        for name in names:
            await repos.challenges.create(_challenge(quest.id, name=name))
        await repos.challenges.create(_challenge(other.id, name="elsewhere"))

        found = await repos.challenges.find_by_quest_id(quest.id)
        assert [c.name for c in found] == names
        assert all(c.quest_id == quest.id for c in found)

    async def test_find_by_unknown_quest_is_empty(self, repos: Repositories):
        assert await repos.challenges.find_by_quest_id("does-not-exist") == []

    async def test_quest_find_attaches_challenges(self, repos: Repositories):
        quest = await repos.quests.create(CreateQuest(title="Q"))
        challenge = await repos.challenges.create(_challenge(quest.id))
        found = await repos.quests.find(quest.id)
        assert found.challenges == [challenge]
