"""Notification endpoints"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture()
def user(register, auth):
    token, data = register("aria")
    return auth(token), data


def _notify(client, headers, **overrides):
    body = {"title": "Welcome", "message": "Pull up a chair."}
    body.update(overrides)
    response = client.post("/notifications", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestInbox:
    def test_create_and_list(self, client: TestClient, user):
        headers, _ = user
        created = _notify(client, headers)
        assert created["type"] == "SYSTEM"
        assert created["read"] is False

        listed = client.get("/notifications", headers=headers).json()["data"]
        assert listed["unread_count"] == 1
        assert [n["id"] for n in listed["notifications"]] == [created["id"]]

    def test_mark_read_and_unread_filter(self, client: TestClient, user):
        headers, _ = user
        first = _notify(client, headers, title="One")
        second = _notify(client, headers, title="Two")

        read = client.patch(f"/notifications/{first['id']}/read", headers=headers)
        assert read.status_code == 200
        assert read.json()["data"]["read"] is True

        unread = client.get("/notifications", params={"unread_only": True}, headers=headers)
        data = unread.json()["data"]
        assert [n["id"] for n in data["notifications"]] == [second["id"]]
        assert data["unread_count"] == 1

    def test_mark_all_read(self, client: TestClient, user):
        headers, _ = user
        _notify(client, headers)
        _notify(client, headers)
        response = client.patch("/notifications/mark-all-read", headers=headers)
        assert response.json()["data"] == {"updated": 2, "unread_count": 0}

    def test_delete(self, client: TestClient, user):
        headers, _ = user
        created = _notify(client, headers)
        assert client.delete(f"/notifications/{created['id']}", headers=headers).status_code == 200
        assert client.delete(f"/notifications/{created['id']}", headers=headers).status_code == 404

    def test_other_users_notification_is_not_found(self, client: TestClient, user, register, auth):
        headers, _ = user
        created = _notify(client, headers)
        token, _ = register("brom")
        response = client.patch(f"/notifications/{created['id']}/read", headers=auth(token))
        assert response.status_code == 404

    def test_requires_auth(self, client: TestClient):
        assert client.get("/notifications").status_code == 401


class TestTargeting:
    def test_only_guild_masters_target_others(self, client: TestClient, user, register, auth):
        _, target = user
        token, _ = register("brom")
        response = client.post(
            "/notifications",
            json={"user_id": target["id"], "title": "Hi", "message": "m"},
            headers=auth(token),
        )
        assert response.status_code == 403

    def test_guild_master_broadcast_to_user(self, client: TestClient, user, register, auth):
        headers, target = user
        gm_token, _ = register("overseer", role="GUILD_MASTER")
        created = _notify(client, auth(gm_token), user_id=target["id"], title="Audit")
        assert created["user_id"] == target["id"]

        inbox = client.get("/notifications", headers=headers).json()["data"]
        assert inbox["notifications"][0]["title"] == "Audit"


class TestQuestEvents:
    def test_application_and_completion_land_in_inboxes(self, client: TestClient, register, auth):
        npc_token, _ = register("warden", role="NPC")
        hero_token, _ = register("aria")
        npc, hero = auth(npc_token), auth(hero_token)
        client.post(
            "/adventurers/me",
            json={
                "title": "Scout",
                "summary": "Fast feet",
                "class": "Ranger",
                "attributes": dict.fromkeys(
                    ["strength", "dexterity", "intelligence", "charisma", "vitality", "luck"], 10
                ),
            },
            headers=hero,
        )
        quest = client.post(
            "/quests/me",
            json={"title": "Scout the ridge", "description": "d", "reward_gold": 5, "status": "POSTED"},
            headers=npc,
        ).json()["data"]

        application = client.post(f"/quests/{quest['id']}/apply", headers=hero).json()["data"]
        npc_inbox = client.get("/notifications", headers=npc).json()["data"]
        assert [n["type"] for n in npc_inbox["notifications"]] == ["QUEST_APPLICATION_RECEIVED"]

        client.post(
            f"/quests/me/{quest['id']}/applications/{application['id']}/decision",
            json={"decision": "ACCEPT"},
            headers=npc,
        )
        completed = client.post(f"/quest/{quest['id']}/complete", headers=npc).json()["data"]
        hero_inbox = client.get("/notifications", headers=hero).json()["data"]
        types = {n["type"]: n for n in hero_inbox["notifications"]}
        assert set(types) == {"QUEST_ACCEPTED", "QUEST_COMPLETED"}
        assert types["QUEST_COMPLETED"]["data"]["scroll_id"] == completed["certificate"]["scroll_id"]
