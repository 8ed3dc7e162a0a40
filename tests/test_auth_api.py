# tests/test_auth_api.py
# PURPOSE: signup/signin behaviour, password storage and token contents.

from conftest import signin, signup

from taskflow.auth import token_service
from taskflow.db_models import UserDB
from taskflow.security import verify_password


def test_health_ok(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_signup_stores_only_a_hash(client, db):
    r = signup(client, "alice", "alice@example.com", "Secret1!")
    assert r.status_code == 201
    body = r.json()
    assert body["username"] == "alice"
    assert body["email"] == "alice@example.com"
    assert "password" not in body and "password_hash" not in body

    row = db.query(UserDB).filter(UserDB.username == "alice").one()
    assert row.password_hash != "Secret1!"
    assert verify_password("Secret1!", row.password_hash)
    assert not verify_password("secret1!", row.password_hash)


def test_signup_duplicate_username_conflicts(client, db):
    assert signup(client, "alice", "alice@example.com").status_code == 201

    r = signup(client, "alice", "other@example.com")
    assert r.status_code == 409
    assert r.json()["error"] == "Username is already taken"
    assert db.query(UserDB).count() == 1


def test_signup_duplicate_email_conflicts(client, db):
    assert signup(client, "alice", "alice@example.com").status_code == 201

    r = signup(client, "bob", "alice@example.com")
    assert r.status_code == 409
    assert r.json()["error"] == "Email is already registered"
    assert db.query(UserDB).count() == 1


def test_signup_rejects_invalid_email(client):
    r = signup(client, "alice", "not-an-email")
    assert r.status_code == 400
    assert "email" in r.json()["error"]


def test_signup_password_limit_counts_bytes(client, db):
    # 40 characters but 80 bytes in UTF-8
    r = signup(client, "zoe", "zoe@example.com", "é" * 40)
    assert r.status_code == 400
    assert "password" in r.json()["error"]
    assert db.query(UserDB).count() == 0

    # exactly 72 bytes is still accepted
    ok = signup(client, "zoe", "zoe@example.com", "é" * 36)
    assert ok.status_code == 201, ok.text
    assert signin(client, "zoe@example.com", "é" * 36).status_code == 200


def test_signin_returns_token_for_the_user(client):
    created = signup(client).json()

    r = signin(client)
    assert r.status_code == 200
    body = r.json()
    assert body["username"] == "alice"
    assert body["token_type"] == "bearer"

    identity = token_service.verify(body["token"])
    assert identity.id == created["id"]
    assert identity.username == "alice"


def test_signin_failures_look_the_same(client):
    signup(client)

    wrong_password = signin(client, "alice@example.com", "nope")
    unknown_email = signin(client, "ghost@example.com", "Secret1!")

    assert wrong_password.status_code == unknown_email.status_code == 403
    assert wrong_password.json()["error"] == unknown_email.json()["error"] == "Invalid credentials"


def test_signin_requires_email_and_password(client):
    r = client.post("/auth/signin", json={"email": "alice@example.com"})
    assert r.status_code == 400
    assert r.json()["error"] == "Email and password are required"

    r2 = client.post("/auth/signin", json={"password": "x"})
    assert r2.status_code == 400


def test_unknown_route_is_404(client):
    r = client.get("/nowhere")
    assert r.status_code == 404
    assert r.json()["status"] == 404
