"""Tests for Firebase ID token verification."""

from firebase_admin import auth as firebase_auth

from tictactoe import auth


def _patch_verify(monkeypatch, fn):
    monkeypatch.setattr(auth, "get_firebase_app", lambda: None)
    monkeypatch.setattr(auth.firebase_auth, "verify_id_token", fn)


def test_valid_token_returns_user(monkeypatch):
    _patch_verify(monkeypatch, lambda token, app=None: {"uid": "u1", "name": "Ada"})
    assert auth.verify_id_token("token") == {"id": "u1", "display_name": "Ada"}


def test_display_name_falls_back_to_email(monkeypatch):
    _patch_verify(monkeypatch, lambda token, app=None: {"uid": "u1", "email": "a@example.com"})
    assert auth.verify_id_token("token")["display_name"] == "a@example.com"


def test_empty_token_is_anonymous(monkeypatch):
    def fail(token, app=None):
        raise AssertionError("should not be called")

    _patch_verify(monkeypatch, fail)
    assert auth.verify_id_token("") is None


def test_rejected_token_is_anonymous(monkeypatch):
    def reject(token, app=None):
        raise firebase_auth.InvalidIdTokenError("bad token")

    _patch_verify(monkeypatch, reject)
    assert auth.verify_id_token("token") is None


def test_malformed_token_is_anonymous(monkeypatch):
    def malformed(token, app=None):
        raise ValueError("not a jwt")

    _patch_verify(monkeypatch, malformed)
    assert auth.verify_id_token("token") is None


def test_claims_without_uid(monkeypatch):
    _patch_verify(monkeypatch, lambda token, app=None: {"name": "Nobody"})
    assert auth.verify_id_token("token") is None


def test_missing_credentials_file_is_anonymous(monkeypatch):
    def missing_credentials():
        raise FileNotFoundError("/nonexistent/sa.json")

    monkeypatch.setattr(auth, "get_firebase_app", missing_credentials)
    assert auth.verify_id_token("token") is None
