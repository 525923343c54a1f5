"""NotificationService tests: CRUD, socket publishes, EventBus reactions"""

from unittest.mock import MagicMock

import pytest

from tavern.core.errors import NotFoundError
from tavern.services.adventurer_service import AdventurerService
from tavern.services.notification_hub import (
    EVENT_BADGE,
    EVENT_NEW,
    EVENT_READ,
    NotificationHub,
)
from tavern.services.notification_service import NotificationService
from tavern.services.quest_service import QuestService

ATTRIBUTES = dict.fromkeys(
    ["strength", "dexterity", "intelligence", "charisma", "vitality", "luck"], 10
)


@pytest.fixture()
def hub():
    return MagicMock(spec=NotificationHub)


@pytest.fixture()
def setup(db_session, bus, hub, make_user):
    user = make_user("aria")
    return NotificationService(db_session, bus, hub), user


def _published_events(hub):
    return [c.args[1] for c in hub.publish.call_args_list]


class TestCrud:
    def test_create_publishes_new_and_badge(self, setup, hub):
        service, user = setup
        orm = service.create_notification(user.id, "SYSTEM", "Welcome", "Pull up a chair.")

        assert orm.read is False
        assert _published_events(hub) == [EVENT_NEW, EVENT_BADGE]
        new_payload = hub.publish.call_args_list[0].args[2]
        assert new_payload["id"] == orm.id
        assert hub.publish.call_args_list[1].args[2] == {"unread_count": 1}

    def test_list_newest_first_with_unread_count(self, setup):
        service, user = setup
        first = service.create_notification(user.id, "SYSTEM", "One", "1")
        second = service.create_notification(user.id, "SYSTEM", "Two", "2")
        service.mark_as_read(first.id, user.id)

        notifications, unread = service.list_for_user(user.id)
        assert [n.id for n in notifications] == [second.id, first.id]
        assert unread == 1

        unread_only, _ = service.list_for_user(user.id, unread_only=True)
        assert [n.id for n in unread_only] == [second.id]

    def test_limit(self, setup):
        service, user = setup
        for i in range(3):
            service.create_notification(user.id, "SYSTEM", f"n{i}", "m")
        notifications, unread = service.list_for_user(user.id, limit=2)
        assert len(notifications) == 2
        assert unread == 3

    def test_mark_read_publishes(self, setup, hub):
        service, user = setup
        orm = service.create_notification(user.id, "SYSTEM", "t", "m")
        hub.publish.reset_mock()

        assert service.mark_as_read(orm.id, user.id).read is True
        assert _published_events(hub) == [EVENT_READ, EVENT_BADGE]
        assert hub.publish.call_args_list[1].args[2] == {"unread_count": 0}

    def test_mark_read_of_someone_elses(self, setup, make_user):
        service, user = setup
        other = make_user("brom")
        orm = service.create_notification(user.id, "SYSTEM", "t", "m")
        with pytest.raises(NotFoundError, match="Notification not found"):
            service.mark_as_read(orm.id, other.id)

    def test_mark_all(self, setup):
        service, user = setup
        for _ in range(3):
            service.create_notification(user.id, "SYSTEM", "t", "m")
        assert service.mark_all_as_read(user.id) == 3
        assert service.unread_count(user.id) == 0

    def test_delete(self, setup):
        service, user = setup
        orm = service.create_notification(user.id, "SYSTEM", "t", "m")
        service.delete_notification(orm.id, user.id)
        assert service.list_for_user(user.id) == ([], 0)

    def test_delete_missing(self, setup):
        service, user = setup
        with pytest.raises(NotFoundError):
            service.delete_notification("missing", user.id)


class TestEventReactions:
    @pytest.fixture()
    def world(self, db_session, bus, hub, make_user):
        npc = make_user("quartermaster", role="NPC")
        hero = make_user("aria")
        AdventurerService(db_session).create_profile(
            hero.id,
            {
                "title": "Scout",
                "summary": "Fast feet",
                "adventurer_class": "Ranger",
                "attributes": ATTRIBUTES,
            },
        )
        notifications = NotificationService(db_session, bus, hub)
        quests = QuestService(db_session, bus)
        quest = quests.create_quest(
            npc.id,
            {
                "title": "Map the marsh",
                "description": "Bring back a map",
                "reward_gold": 40,
                "status": "POSTED",
                "difficulty": "Medium",
            },
        )
        return notifications, quests, quest, npc, hero

    def test_application_notifies_npc(self, world):
        notifications, quests, quest, npc, hero = world
        application = quests.apply_to_quest(hero.id, quest.id)

        items, unread = notifications.list_for_user(npc.id)
        assert unread == 1
        assert items[0].type == "QUEST_APPLICATION_RECEIVED"
        assert items[0].message == 'Aria has applied to your quest "Map the marsh".'
        assert items[0].data == {"quest_id": quest.id, "application_id": application.id}

    def test_decision_notifies_every_applicant(self, world, db_session, make_user):
        notifications, quests, quest, npc, hero = world
        brom = make_user("brom")
        AdventurerService(db_session).create_profile(
            brom.id,
            {
                "title": "Porter",
                "summary": "Carries things",
                "adventurer_class": "Fighter",
                "attributes": ATTRIBUTES,
            },
        )
        chosen = quests.apply_to_quest(hero.id, quest.id)
        quests.apply_to_quest(brom.id, quest.id)

        quests.decide_application(npc.id, quest.id, chosen.id, "ACCEPT")

        hero_items, _ = notifications.list_for_user(hero.id)
        assert [n.type for n in hero_items] == ["QUEST_ACCEPTED"]
        assert hero_items[0].data == {"quest_id": quest.id}
        brom_items, _ = notifications.list_for_user(brom.id)
        assert [n.type for n in brom_items] == ["QUEST_APPLICATION_REJECTED"]

    def test_completion_notifies_adventurer_with_scroll(self, world):
        notifications, quests, quest, npc, hero = world
        application = quests.apply_to_quest(hero.id, quest.id)
        quests.decide_application(npc.id, quest.id, application.id, "ACCEPT")
        result = quests.complete_quest(npc.id, quest.id)

        items, _ = notifications.list_for_user(hero.id)
        by_type = {n.type: n for n in items}
        completed = by_type["QUEST_COMPLETED"]
        assert completed.data["scroll_id"] == result.certificate.scroll_id
        assert completed.data["xp_awarded"] == 200
        assert "200 XP" in completed.message
        assert by_type["RANK_UP"].data == {"old_rank": "F", "new_rank": "E"}
