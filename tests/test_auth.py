import math
import time

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from conftest import STRONG_PASSWORD, auth_headers, register, unit_vector
from studyquiz.models import Account


class TestRegister:
    def test_register_success(self, client):
        resp = register(client, preferences={"subjects": ["Mathematics"], "dailyGoal": 20})
        assert resp.status_code == 201
        body = resp.json()
        assert body["status"] == "success"
        user = body["data"]["user"]
        assert user["email"] == "student@example.com"
        assert user["preferences"]["subjects"] == ["Mathematics"]
        assert user["preferences"]["dailyGoal"] == 20
        assert user["progress"]["totalQuestions"] == 0
        assert "password" not in user and "passwordHash" not in user
        assert body["data"]["token"]

    def test_email_is_normalised(self, client, db):
        register(client, email="  Mixed.Case@Example.COM ")
        account = db.scalar(select(Account))
        assert account.email == "mixed.case@example.com"
        assert account.password_hash != STRONG_PASSWORD

    def test_duplicate_email_case_insensitive(self, client):
        assert register(client, email="dupe@test.com").status_code == 201
        resp = register(client, email="DUPE@Test.com")
        assert resp.status_code == 400
        assert resp.json()["message"] == "User with this email already exists"

    def test_weak_password_rejected(self, client):
        resp = register(client, password="alllowercase1")
        assert resp.status_code == 400
        body = resp.json()
        assert body["message"] == "Validation failed"
        assert any(e["field"] == "password" for e in body["errors"])

    def test_short_name_rejected(self, client):
        resp = register(client, firstName="A")
        assert resp.status_code == 400
        assert any(e["field"] == "firstName" for e in resp.json()["errors"])

    def test_invalid_email_rejected(self, client):
        assert register(client, email="not-an-email").status_code == 400

    def test_descriptor_must_have_128_components(self, client):
        assert register(client, faceDescriptor=[0.1, 0.2]).status_code == 400

    def test_descriptor_rejects_numeric_strings(self, client):
        assert register(client, faceDescriptor=["0.5"] * 128).status_code == 400

    def test_concurrent_duplicate_is_400(self, client, monkeypatch):
        register(client, email="race@example.com")
        # Pretend the existence check ran before the other request committed
        monkeypatch.setattr(Session, "scalar", lambda self, *args, **kwargs: None)
        resp = register(client, email="race@example.com")
        assert resp.status_code == 400
        assert resp.json()["message"] == "User with this email already exists"

    @pytest.mark.parametrize("email", ["a" * 40 + "!", "a." * 30 + "@x", "a@" + "b-" * 40 + "!"])
    def test_malformed_email_fails_fast(self, client, email):
        start = time.perf_counter()
        resp = client.post("/api/auth/login", json={"email": email, "password": "x"})
        assert resp.status_code == 400
        assert time.perf_counter() - start < 1.0

    def test_overlong_email_rejected(self, client):
        assert register(client, email="a" * 250 + "@example.com").status_code == 400


class TestLogin:
    def test_login_success(self, client, token):
        resp = client.post("/api/auth/login", json={"email": "STUDENT@example.com", "password": STRONG_PASSWORD})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["email"] == "student@example.com"
        assert data["token"] != token

    def test_wrong_password(self, client, token):
        resp = client.post("/api/auth/login", json={"email": "student@example.com", "password": "Wrong1234"})
        assert resp.status_code == 401
        assert resp.json() == {"status": "error", "message": "Invalid credentials"}

    def test_unknown_email_same_message(self, client):
        resp = client.post("/api/auth/login", json={"email": "ghost@example.com", "password": STRONG_PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid credentials"

    def test_deactivated_account_same_message(self, client, token, db):
        account = db.scalar(select(Account))
        account.is_active = False
        db.commit()
        resp = client.post("/api/auth/login", json={"email": "student@example.com", "password": STRONG_PASSWORD})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Invalid credentials"

    def test_records_login_method(self, client, token, db):
        client.post("/api/auth/login", json={"email": "student@example.com", "password": STRONG_PASSWORD})
        account = db.scalar(select(Account))
        assert account.last_login_method == "password"
        assert account.last_login is not None


class TestFaceLogin:
    def test_matches_enrolled_account(self, client, db):
        register(client, email="one@example.com", faceDescriptor=unit_vector(0))
        register(client, email="two@example.com", faceDescriptor=unit_vector(1))
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": unit_vector(1)})
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["user"]["email"] == "two@example.com"
        assert data["similarity"] == 1.0
        account = db.scalar(select(Account).where(Account.email == "two@example.com"))
        assert account.last_login_method == "face"

    def test_no_match_is_401(self, client):
        register(client, faceDescriptor=[1.0] * 128)
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": [-1.0] * 128})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Face not recognized"

    def test_orthogonal_unit_vectors_still_match(self, client):
        # Distance sqrt(2) is small next to sqrt(128): score is about 0.875
        register(client, faceDescriptor=unit_vector(0))
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": unit_vector(5)})
        assert resp.status_code == 200
        assert resp.json()["data"]["similarity"] == pytest.approx(1 - math.sqrt(2) / math.sqrt(128))

    def test_rejects_string_components(self, client):
        register(client, faceDescriptor=unit_vector(0))
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": ["1.0"] * 128})
        assert resp.status_code == 400

    def test_length_mismatch_never_matches(self, client):
        register(client, faceDescriptor=unit_vector(0))
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": [1.0, 0.0, 0.0]})
        assert resp.status_code == 401

    def test_deactivated_match_is_401(self, client, db):
        register(client, faceDescriptor=unit_vector(0))
        account = db.scalar(select(Account))
        account.is_active = False
        db.commit()
        resp = client.post("/api/auth/face-login", json={"faceDescriptor": unit_vector(0)})
        assert resp.status_code == 401
        assert resp.json()["message"] == "Face not recognized"

    def test_missing_descriptor_is_validation_error(self, client):
        resp = client.post("/api/auth/face-login", json={})
        assert resp.status_code == 400


class TestSession:
    def test_me(self, client, headers):
        resp = client.get("/api/auth/me", headers=headers)
        assert resp.status_code == 200
        user = resp.json()["data"]["user"]
        assert user["firstName"] == "Ada"
        assert user["lastLogin"] is not None

    def test_me_requires_token(self, client):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["status"] == "error"

    def test_garbage_token(self, client):
        assert client.get("/api/auth/me", headers=auth_headers("not.a.jwt")).status_code == 401

    def test_logout_revokes_token(self, client, headers):
        assert client.post("/api/auth/logout", headers=headers).status_code == 200
        assert client.get("/api/auth/me", headers=headers).status_code == 401

    def test_logout_leaves_other_sessions(self, client, token):
        other = client.post("/api/auth/login", json={"email": "student@example.com", "password": STRONG_PASSWORD})
        other_token = other.json()["data"]["token"]
        client.post("/api/auth/logout", headers=auth_headers(token))
        assert client.get("/api/auth/me", headers=auth_headers(other_token)).status_code == 200
