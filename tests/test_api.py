from tests.conftest import auth_headers


def test_article_lifecycle(client, seed_users, seed_languages):
    headers = auth_headers(client, "sales@example.com")

    resp = client.post("/api/articles", json={"number": "A-1", "price": "10.00"}, headers=headers)
    assert resp.status_code == 200, resp.text
    article = resp.json()
    assert article["last_changed_by"]["change_type"] == "entity"
    assert len(article["calculation_items"]) == 4

    resp = client.put(f"/api/articles/{article['id']}", json={"price": "12.00"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["price"] in ("12.00", "12.0", 12.0)

    resp = client.put(
        f"/api/articles/{article['id']}/content",
        json={"contents": [{"title": "Titel", "content": "Text", "language_id": seed_languages["de"].id}]},
        headers=headers,
    )
    assert resp.status_code == 200
    assert [c["title"] for c in resp.json()] == ["Titel"]

    resp = client.get(f"/api/articles/{article['id']}", headers=headers)
    assert resp.json()["last_changed_by"]["change_type"] == "content"

    resp = client.get(f"/api/articles/{article['id']}/history?limit=1", headers=headers)
    assert resp.status_code == 200
    history = resp.json()
    assert len(history) == 1
    assert history[0]["action"] == "UPDATE"
    assert history[0]["user"]["email"] == "sales@example.com"

    assert client.delete(f"/api/articles/{article['id']}", headers=headers).status_code == 200
    assert client.get(f"/api/articles/{article['id']}", headers=headers).status_code == 404


def test_save_locked_article_returns_conflict(client, seed_users, seed_article):
    client.post(f"/api/articles/{seed_article.id}/lock", headers=auth_headers(client, "other@example.com"))

    resp = client.put(
        f"/api/articles/{seed_article.id}",
        json={"number": "X"},
        headers=auth_headers(client, "sales@example.com"),
    )
    assert resp.status_code == 409
    assert resp.json()["locked_by"] == seed_users["other"].id


def test_viewer_cannot_edit(client, seed_users, seed_block):
    resp = client.put(
        f"/api/blocks/{seed_block.id}",
        json={"name": "X"},
        headers=auth_headers(client, "viewer@example.com"),
    )
    assert resp.status_code == 403


def test_block_copy(client, seed_users, seed_block):
    headers = auth_headers(client, "sales@example.com")
    resp = client.post("/api/blocks/copy", json={"original_block_id": seed_block.id}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Einleitung (Kopie)"


def test_opportunity_with_quotes_cannot_be_deleted(client, seed_users, seed_opportunity, seed_languages):
    headers = auth_headers(client, "sales@example.com")
    resp = client.post(
        "/api/quotes",
        json={"sales_opportunity_id": seed_opportunity.id, "language_id": seed_languages["de"].id},
        headers=headers,
    )
    assert resp.status_code == 200, resp.text
    quote = resp.json()
    version_id = quote["variants"][0]["versions"][0]["id"]

    resp = client.get(f"/api/sales-opportunities/{seed_opportunity.id}", headers=headers)
    assert resp.json()["quotes_count"] == 1

    resp = client.delete(f"/api/sales-opportunities/{seed_opportunity.id}", headers=headers)
    assert resp.status_code == 409

    resp = client.post(
        f"/api/quote-versions/{version_id}/positions",
        json={"position_number": 1},
        headers=headers,
    )
    assert resp.status_code == 422

    assert client.delete(f"/api/quotes/{quote['id']}", headers=headers).status_code == 200
    assert client.delete(f"/api/sales-opportunities/{seed_opportunity.id}", headers=headers).status_code == 200


def test_audit_feeds(client, seed_users, seed_block):
    sales = auth_headers(client, "sales@example.com")
    client.put(f"/api/blocks/{seed_block.id}", json={"name": "Neu"}, headers=sales)

    resp = client.get("/api/audit/recent", headers=sales)
    assert resp.status_code == 200
    assert resp.json()[0]["entity_type"] == "blocks"

    own = client.get(f"/api/audit/users/{seed_users['sales'].id}", headers=sales)
    assert own.status_code == 200
    assert len(own.json()) == 1

    other = auth_headers(client, "other@example.com")
    assert client.get(f"/api/audit/users/{seed_users['sales'].id}", headers=other).status_code == 403

    admin = auth_headers(client, "admin@example.com")
    assert client.get(f"/api/audit/users/{seed_users['sales'].id}", headers=admin).status_code == 200


def test_save_deleted_block_returns_not_found(client, seed_users, seed_block):
    headers = auth_headers(client, "sales@example.com")
    assert client.delete(f"/api/blocks/{seed_block.id}", headers=headers).status_code == 200

    resp = client.put(f"/api/blocks/{seed_block.id}", json={"name": "Neu"}, headers=headers)
    assert resp.status_code == 404

    history = client.get(f"/api/blocks/{seed_block.id}/history", headers=headers).json()
    assert [entry["action"] for entry in history] == ["DELETE"]
    assert client.delete(f"/api/blocks/{seed_block.id}", headers=headers).status_code == 404
