"""Конфигурация приложения."""
import os
from functools import lru_cache


@lru_cache
def get_config():
    return type("Config", (), {
        "debug": os.environ.get("DEBUG", "0").lower() in ("1", "true", "yes"),
        "allowed_origins": os.environ.get("ALLOWED_ORIGINS", "*").split(","),
        "storage_backend": os.environ.get("STORAGE_BACKEND", "firestore").lower(),
        "games_collection": os.environ.get("GAMES_COLLECTION", "games"),
        "firebase_project_id": os.environ.get("FIREBASE_PROJECT_ID", ""),
        "firebase_credentials": os.environ.get("FIREBASE_CREDENTIALS", ""),
    })()
