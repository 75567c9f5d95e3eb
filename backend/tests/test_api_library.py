def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_templates_list_add_delete_reset(client):
    r = client.get("/templates")
    assert r.status_code == 200
    items = r.json()
    assert len(items) == 20
    assert items[0]["name"] == "Goblin"

    r = client.post(
        "/templates", json={"name": "Bandit Captain", "hp_max": 65, "ac": 15, "cr": "2"}
    )
    assert r.status_code == 200, r.text
    tpl = r.json()
    assert tpl["ac"] == "15"
    assert tpl["id"].startswith("npc_")

    r = client.get("/templates")
    assert any(t["id"] == tpl["id"] for t in r.json())

    r = client.delete(f"/templates/{tpl['id']}")
    assert r.status_code == 204
    r = client.delete(f"/templates/{tpl['id']}")
    assert r.status_code == 404

    client.delete("/templates/npc_goblin")
    r = client.post("/templates:reset")
    assert r.status_code == 200
    assert r.json()[0]["id"] == "npc_goblin"


def test_template_validation_422(client):
    r = client.post("/templates", json={"name": " ", "hp_max": 10})
    assert r.status_code == 422
    assert r.json()["detail"]["code"] == "NAME_REQUIRED"

    r = client.post("/templates", json={"name": "Ghost", "hp_max": "0"})
    assert r.status_code == 422

    # hp_max отсутствует
    r = client.post("/templates", json={"name": "Ghost"})
    assert r.status_code == 422


def test_conditions_vocabulary(client):
    r = client.get("/conditions")
    assert r.status_code == 200
    assert len(r.json()) == 16

    r = client.post("/conditions", json={"name": "  Hexed "})
    assert r.status_code == 200
    assert r.json()[-1] == "Hexed"

    # дубликат молча игнорируется
    r = client.post("/conditions", json={"name": "Hexed"})
    assert r.json().count("Hexed") == 1

    r = client.delete("/conditions/Hexed")
    assert r.status_code == 200
    assert "Hexed" not in r.json()

    r = client.delete("/conditions/Hexed")
    assert r.status_code == 404

    client.delete("/conditions/Prone")
    r = client.post("/conditions:reset")
    assert "Prone" in r.json()
