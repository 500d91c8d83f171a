"""
Identity tests: password hashing, bearer tokens, logins and role guards
"""
import time
from datetime import timedelta

import pytest

from auth import (
    create_access_token, decode_token, get_password_hash, verify_password,
    ROLE_ADMIN, ROLE_MEMBER, ROLE_PARTNER,
)
from config import Settings, load_settings
from conftest import PASSWORD, partner_form
from exceptions import AuthError


class TestPasswords:
    def test_hash_is_not_the_password(self):
        hashed = get_password_hash("secret123", rounds=4)
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("secret124", hashed)

    def test_default_cost_factor_is_12(self):
        assert Settings(SECRET_KEY="x").BCRYPT_ROUNDS == 12
        assert get_password_hash("secret123").startswith("$2b$12$")

    def test_malformed_hash_never_matches(self):
        assert not verify_password("secret123", "not-a-bcrypt-hash")
        assert not verify_password("", get_password_hash("secret123", rounds=4))


class TestTokens:
    def test_round_trip(self, settings):
        token = create_access_token(settings, 7, "a@b.com", ROLE_PARTNER)
        payload = decode_token(settings, token)
        assert payload["sub"] == "7"
        assert payload["email"] == "a@b.com"
        assert payload["role"] == ROLE_PARTNER

    def test_default_lifetime_is_seven_days(self, settings):
        token = create_access_token(settings, 1, "a@b.com", ROLE_MEMBER)
        payload = decode_token(settings, token)
        issued_window = payload["exp"] - int(timedelta(days=7).total_seconds())
        # exp is roughly now + 7 days
        assert abs(issued_window - time.time()) < 60

    def test_expired_token_rejected(self, settings):
        token = create_access_token(settings, 1, "a@b.com", ROLE_MEMBER, expires_delta=timedelta(seconds=-1))
        with pytest.raises(AuthError, match="Token expired"):
            decode_token(settings, token)

    def test_foreign_signature_rejected(self, settings):
        other = Settings(SECRET_KEY="another-key")
        token = create_access_token(other, 1, "a@b.com", ROLE_MEMBER)
        with pytest.raises(AuthError, match="Invalid token"):
            decode_token(settings, token)

    def test_unknown_role_rejected(self, settings):
        token = create_access_token(settings, 1, "a@b.com", "superuser")
        with pytest.raises(AuthError):
            decode_token(settings, token)

    def test_garbage_rejected(self, settings):
        with pytest.raises(AuthError):
            decode_token(settings, "not.a.token")


class TestSettings:
    def test_secret_key_required(self, monkeypatch):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(ValueError, match="SECRET_KEY"):
            load_settings()

    def test_discount_from_environment(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "k")
        monkeypatch.setenv("BASE_DISCOUNT_PERCENT", "0")
        monkeypatch.setenv("FAMILY_DISCOUNT_PERCENT", "15")
        loaded = load_settings()
        assert loaded.DISCOUNT.BASE_PERCENT == 0
        assert loaded.DISCOUNT.FAMILY_PERCENT == 15

    def test_defaults(self, monkeypatch):
        monkeypatch.setenv("SECRET_KEY", "k")
        monkeypatch.delenv("BASE_DISCOUNT_PERCENT", raising=False)
        monkeypatch.delenv("FAMILY_DISCOUNT_PERCENT", raising=False)
        loaded = load_settings()
        assert loaded.ACCESS_TOKEN_EXPIRE_DAYS == 7
        assert loaded.DISCOUNT.BASE_PERCENT == 10
        assert loaded.DISCOUNT.FAMILY_PERCENT is None


class TestPartnerLogin:
    def test_pending_partner_cannot_log_in(self, client):
        assert client.post("/api/partners/register", data=partner_form()).status_code == 201

        response = client.post("/api/partners/login", json={"email": "login@sunrise.in", "password": PASSWORD})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials or account not approved yet"

    def test_active_partner_gets_token(self, client, admin_headers, settings):
        partner_id = client.post("/api/partners/register", data=partner_form()).json()["partner"]["id"]
        client.post(f"/api/partners/applications/{partner_id}/approve", headers=admin_headers)

        response = client.post("/api/partners/login", json={"email": "Login@Sunrise.in", "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["partner"] == {"id": partner_id, "email": "login@sunrise.in", "name": "Sunrise Clinic", "type": "clinic"}
        payload = decode_token(settings, body["token"])
        assert payload["sub"] == str(partner_id)
        assert payload["role"] == ROLE_PARTNER

    def test_wrong_password(self, client, partner):
        response = client.post("/api/partners/login", json={"email": partner.email, "password": "wrong-password"})
        assert response.status_code == 401
        assert response.json()["message"] == "Invalid credentials"

    def test_malformed_body(self, client):
        response = client.post("/api/partners/login", json={"email": "not-an-email"})
        assert response.status_code == 400
        assert "message" in response.json()


class TestMemberLogin:
    def test_member_login_and_me(self, client, member, settings):
        response = client.post("/api/auth/login", json={"email": member.email, "password": PASSWORD})
        assert response.status_code == 200
        body = response.json()
        assert body["user"]["membershipId"] == "MED-1001"
        assert "passwordHash" not in body["user"]
        assert decode_token(settings, body["token"])["role"] == ROLE_MEMBER

        me = client.get("/api/auth/me", headers={"Authorization": f"Bearer {body['token']}"})
        assert me.status_code == 200
        assert me.json()["email"] == member.email

    def test_admin_login_carries_admin_role(self, client, admin, settings):
        response = client.post("/api/auth/login", json={"email": admin.email, "password": PASSWORD})
        assert response.status_code == 200
        assert decode_token(settings, response.json()["token"])["role"] == ROLE_ADMIN

    def test_bad_password(self, client, member):
        response = client.post("/api/auth/login", json={"email": member.email, "password": "nope-nope"})
        assert response.status_code == 401
        assert response.json()["message"] == "Incorrect email or password"


class TestGuards:
    def test_missing_token(self, client):
        response = client.get("/api/partners/partner-stats")
        assert response.status_code == 401
        assert response.json()["message"] == "No token provided"

    def test_expired_token(self, client, partner, settings):
        token = create_access_token(settings, partner.id, partner.email, ROLE_PARTNER, expires_delta=timedelta(seconds=-5))
        response = client.get("/api/partners/partner-stats", headers={"Authorization": f"Bearer {token}"})
        assert response.status_code == 401
        assert response.json()["message"] == "Token expired"

    def test_member_token_on_partner_route(self, client, member_headers):
        response = client.get("/api/partners/partner-stats", headers=member_headers)
        assert response.status_code == 403

    def test_partner_token_on_member_route(self, client, partner_headers):
        response = client.get("/api/partners/my-visits", headers=partner_headers)
        assert response.status_code == 403

    def test_partner_token_after_partner_removed(self, client, partner, partner_headers, admin_headers):
        client.delete(f"/api/admin/partners/{partner.id}", headers=admin_headers)
        response = client.get("/api/partners/partner-stats", headers=partner_headers)
        assert response.status_code == 401
