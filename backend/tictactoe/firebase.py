"""Инициализация firebase_admin (один экземпляр приложения на процесс)."""
import logging
from functools import lru_cache

import firebase_admin
from firebase_admin import credentials

from .config import get_config

logger = logging.getLogger(__name__)


@lru_cache
def get_firebase_app() -> firebase_admin.App:
    config = get_config()
    if config.firebase_credentials:
        cred = credentials.Certificate(config.firebase_credentials)
    else:
        cred = credentials.ApplicationDefault()
    options = {"projectId": config.firebase_project_id} if config.firebase_project_id else None
    app = firebase_admin.initialize_app(cred, options)
    logger.info("Firebase: initialized app project=%s", config.firebase_project_id or "<default>")
    return app
