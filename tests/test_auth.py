from quotation.models.article import Article
from tests.conftest import auth_headers


def test_login_success(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "admin@example.com"})
    assert resp.status_code == 200
    data = resp.json()
    assert "access_token" in data
    assert data["user"]["role"] == "admin"


def test_login_unknown_email(client, seed_users):
    resp = client.post("/api/auth/login", json={"email": "nobody@example.com"})
    assert resp.status_code == 401


def test_me_authenticated(client, seed_users):
    headers = auth_headers(client, "sales@example.com")
    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == "sales@example.com"


def test_me_unauthenticated(client):
    resp = client.get("/api/auth/me")
    assert resp.status_code in (401, 403)  # HTTPBearer raises 401 or 403 depending on version


def test_invalid_token(client):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-token"})
    assert resp.status_code == 401


def test_health(client):
    resp = client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_logout_releases_locks(client, db, seed_users, seed_article):
    headers = auth_headers(client, "sales@example.com")
    assert client.post(f"/api/articles/{seed_article.id}/lock", headers=headers).status_code == 200

    resp = client.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 200
    assert resp.json()["released_locks"] == 1

    db.expire_all()
    assert db.get(Article, seed_article.id).blocked_by is None
