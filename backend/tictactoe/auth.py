"""
Проверка Firebase ID token, полученного браузером после входа через Google.
https://firebase.google.com/docs/auth/admin/verify-id-tokens
"""
import logging

from firebase_admin import auth as firebase_auth
from firebase_admin import exceptions as firebase_exceptions
from google.auth.exceptions import GoogleAuthError

from .firebase import get_firebase_app

logger = logging.getLogger(__name__)


def verify_id_token(id_token: str) -> dict | None:
    """
    Проверяет токен и возвращает {"id", "display_name"} или None.
    None означает «пользователь не вошёл»: отмена входа, истёкший или
    поддельный токен для игры ничем не отличаются.
    """
    if not id_token:
        return None
    try:
        claims = firebase_auth.verify_id_token(id_token, app=get_firebase_app())
    except (ValueError, OSError, firebase_exceptions.FirebaseError, GoogleAuthError) as e:
        logger.warning("Auth: id token rejected: %s", e)
        return None
    return _user_from_claims(claims)


def _user_from_claims(claims: dict) -> dict | None:
    """Извлекает uid и отображаемое имя из claims токена."""
    uid = claims.get("uid") or claims.get("sub")
    if not uid:
        return None
    return {
        "id": str(uid),
        "display_name": claims.get("name") or claims.get("email") or "",
    }
