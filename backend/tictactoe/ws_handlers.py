"""
Обработка сообщений WebSocket: auth, new_game, make_move, статистика.
По завершении партии результат записывается в фоне ровно один раз.
"""
import asyncio
import json
import logging
import uuid
from functools import partial

from fastapi import WebSocket
from starlette.websockets import WebSocketDisconnect

from .auth import verify_id_token
from .config import get_config
from .recorder import get_recorder
from .session import (
    GameSession,
    drop_session,
    get_or_create_session,
    get_session,
    new_session,
    preview_session,
    session_state_payload,
)
from .ws_manager import manager, win_tally_payload

logger = logging.getLogger(__name__)


def _anonymous_key() -> str:
    return f"anon-{uuid.uuid4().hex}"


async def _send_tally(key: str) -> None:
    x_wins, o_wins = await get_recorder().fetch_win_tally()
    await manager.send_to_user(key, win_tally_payload(x_wins, o_wins))


async def _on_recorded(key: str, session: GameSession, record_id: str) -> None:
    """После успешной записи: сообщить игроку и разослать новый счёт."""
    session.record_id = record_id
    await manager.send_to_user(
        key,
        {"type": "recorded", "game_id": session.id, "record_id": record_id},
    )
    x_wins, o_wins = await get_recorder().fetch_win_tally()
    await manager.broadcast_win_tally(x_wins, o_wins)


async def handle_ws_message(ws: WebSocket, raw: str, key: str) -> bool:
    """
    Обрабатывает одно сообщение от подключённого клиента.
    Возвращает False если соединение нужно закрыть.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.warning("WS: invalid JSON from %s: %s", key, e)
        return True
    if not isinstance(data, dict):
        logger.warning("WS: non-object message from %s", key)
        return True
    conn = manager.get(key)
    if not conn:
        return False
    t = data.get("type")
    logger.info("WS: msg from %s type=%s", key, t)
    if t == "new_game":
        s = new_session(key, conn.owner_id)
        await manager.send_to_user(key, session_state_payload(s))
        return True
    if t == "subscribe_game":
        s = get_or_create_session(key, conn.owner_id)
        await manager.send_to_user(key, session_state_payload(s))
        return True
    if t == "make_move":
        s = get_session(key)
        if s is None or not s.play(data.get("index")):
            return True
        await manager.send_to_user(key, {**session_state_payload(s), "type": "game_update"})
        if s.take_record_token():
            outcome = s.outcome
            logger.info("WS: game %s finished outcome=%s winner=%s", s.id, outcome.status, outcome.winner)
            get_recorder().record_in_background(
                s.board,
                outcome.winner,
                s.owner_id,
                on_recorded=partial(_on_recorded, key, s),
            )
        return True
    if t == "get_tally":
        await _send_tally(key)
        return True
    if t == "get_history":
        games = []
        if conn.owner_id:
            records = await get_recorder().fetch_history(conn.owner_id)
            records.sort(key=lambda r: r.created_at, reverse=True)
            games = [r.to_payload() for r in records]
        await manager.send_to_user(key, {"type": "history", "games": games})
        return True
    if t == "preview_game":
        record_id = data.get("record_id")
        if not conn.owner_id or not record_id:
            return True
        records = await get_recorder().fetch_history(conn.owner_id)
        record = next((r for r in records if r.id == record_id), None)
        if record:
            s = preview_session(key, conn.owner_id, record)
            await manager.send_to_user(key, session_state_payload(s))
        return True
    logger.info("WS: unknown message type %r from %s", t, key)
    return True


async def _authenticate(data: dict) -> dict | None:
    """Пользователь из auth-сообщения или None (анонимная игра)."""
    config = get_config()
    id_token = data.get("id_token") or ""
    if config.debug and not id_token and data.get("debug_uid") is not None:
        uid = data.get("debug_uid")
        logger.info("WS: debug auth, uid=%s", uid)
        return {"id": str(uid), "display_name": f"dev{uid}"}
    if not id_token:
        return None
    return await asyncio.to_thread(verify_id_token, id_token)


async def ws_auth_and_loop(ws: WebSocket) -> None:
    """
    Первое сообщение — auth (токен необязателен). Дальше цикл приёма сообщений.
    """
    key = None
    try:
        await ws.accept()
        logger.info("WS: accepted, waiting for auth")
        raw = await ws.receive_text()
        try:
            data = json.loads(raw)
        except json.JSONDecodeError:
            data = None
        msg_type = data.get("type") if isinstance(data, dict) else None
        logger.info("WS: first message type=%s", msg_type)
        if msg_type != "auth":
            logger.warning("WS: expected auth, got %s, closing 4001", msg_type)
            await ws.close(code=4001)
            return
        user = await _authenticate(data)
        if user:
            key = owner_id = user["id"]
            display_name = user.get("display_name") or ""
        else:
            key, owner_id, display_name = _anonymous_key(), None, ""
        await manager.connect(ws, key, owner_id, display_name)
        logger.info("WS: auth ok key=%s signed_in=%s", key, owner_id is not None)
        s = get_or_create_session(key, owner_id)
        await manager.send_to_user(
            key,
            {"type": "session", "user_id": owner_id, "display_name": display_name},
        )
        await manager.send_to_user(key, session_state_payload(s))
        await _send_tally(key)
        while True:
            msg = await ws.receive_text()
            if not await handle_ws_message(ws, msg, key):
                break
    except WebSocketDisconnect as e:
        logger.info("WS: client disconnected code=%s reason=%s key=%s", e.code, e.reason or "", key)
    except Exception as e:
        logger.exception("WS: error key=%s: %s", key, e)
    finally:
        if key:
            manager.disconnect(key, ws)
            if manager.get(key) is None:
                drop_session(key)
            logger.info("WS: disconnected key=%s", key)
