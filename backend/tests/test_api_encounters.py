def _create(client, name="Goblin Ambush"):
    r = client.post("/encounters", json={"name": name})
    assert r.status_code in (200, 201), r.text
    return r.json()["id"]


def _apply(client, eid, command):
    r = client.post(f"/encounters/{eid}/commands:apply", json={"command": command})
    assert r.status_code == 200, r.text
    return r.json()


def test_encounters_create_list_get_delete(client):
    eid = _create(client, "Test Encounter")

    r = client.get("/encounters")
    assert r.status_code == 200
    assert any(x["id"] == eid for x in r.json())

    r = client.get(f"/encounters/{eid}")
    assert r.status_code == 200
    assert r.json()["name"] == "Test Encounter"

    r = client.delete(f"/encounters/{eid}")
    assert r.status_code == 204
    r = client.get(f"/encounters/{eid}")
    assert r.status_code == 404


def test_runtime_requires_init(client):
    eid = _create(client)

    r = client.post(
        f"/encounters/{eid}/commands:apply", json={"command": {"type": "StartCombat"}}
    )
    assert r.status_code == 409

    r = client.get(f"/encounters/{eid}/state")
    assert r.status_code == 404

    r = client.post("/encounters/nope/state:init", json={})
    assert r.status_code == 404


def test_runtime_flow(client):
    eid = _create(client)

    r = client.post(f"/encounters/{eid}/state:init", json={})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["phase"] == "building"
    assert body["order"] == []
    init_save = body["save_id"]

    body = _apply(
        client,
        eid,
        {"type": "AddCombatant", "name": "Aria", "max_hp": "20", "initiative": "15"},
    )
    aria_id = body["events_delta"][0]["payload"]["combatant"]["id"]
    assert body["save_id"] > init_save

    body = _apply(
        client, eid, {"type": "AddFromTemplate", "template_id": "npc_goblin", "initiative": 12}
    )
    assert [o["name"] for o in body["order"]] == ["Aria", "Goblin"]

    body = _apply(client, eid, {"type": "StartCombat"})
    assert body["phase"] == "active"
    assert body["current_entry_id"] == aria_id

    body = _apply(client, eid, {"type": "SetPendingDamage", "amount": "6"})
    body = _apply(client, eid, {"type": "CommitTurn"})
    assert body["order"][0]["hp_current"] == 14
    assert body["current_entry_id"] != aria_id

    # отказ: 200 с событием CommandRejected, состояние прежнее
    body = _apply(client, eid, {"type": "StartCombat"})
    assert body["events_delta"][0]["type"] == "CommandRejected"
    assert body["events_delta"][0]["payload"]["code"] == "COMBAT_ALREADY_STARTED"

    r = client.get(f"/encounters/{eid}/state")
    assert r.status_code == 200
    state = r.json()
    assert state["phase"] == "active"
    assert state["state"]["combatants"][aria_id]["hp_current"] == 14


def test_runtime_malformed_command_422(client):
    eid = _create(client)
    client.post(f"/encounters/{eid}/state:init", json={})

    r = client.post(
        f"/encounters/{eid}/commands:apply", json={"command": {"type": "CastFireball"}}
    )
    assert r.status_code == 422

    r = client.post(
        f"/encounters/{eid}/commands:apply",
        json={"command": {"type": "StartCombat", "extra": 1}},
    )
    assert r.status_code == 422


def test_init_keeps_existing_state_unless_reset(client):
    eid = _create(client)
    client.post(f"/encounters/{eid}/state:init", json={})
    _apply(client, eid, {"type": "AddCombatant", "name": "A", "max_hp": 5, "initiative": 1})

    r = client.post(f"/encounters/{eid}/state:init", json={})
    assert len(r.json()["order"]) == 1

    r = client.post(f"/encounters/{eid}/state:init", json={"reset_existing": True})
    assert r.json()["order"] == []
