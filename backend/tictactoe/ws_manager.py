"""
Менеджер WebSocket: подключения по ключу клиента, рассылка счёта побед.
"""
import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class Connection:
    def __init__(self, ws: WebSocket, key: str, owner_id: str | None, display_name: str):
        self.ws = ws
        self.key = key
        self.owner_id = owner_id  # None для анонимного игрока
        self.display_name = display_name


class WSManager:
    def __init__(self):
        self._by_key: dict[str, Connection] = {}
        self._all: list[Connection] = []

    def get(self, key: str) -> Connection | None:
        return self._by_key.get(key)

    async def connect(
        self,
        ws: WebSocket,
        key: str,
        owner_id: str | None,
        display_name: str,
    ) -> Connection:
        if key in self._by_key:
            old = self._by_key[key]
            self._all.remove(old)
            try:
                await old.ws.close(code=4000)
            except RuntimeError as e:
                logger.info("WS: old connection for %s already closed: %s", key, e)
        conn = Connection(ws, key, owner_id, display_name)
        self._by_key[key] = conn
        self._all.append(conn)
        return conn

    def disconnect(self, key: str, ws: WebSocket | None = None) -> None:
        conn = self._by_key.get(key)
        if conn is None or (ws is not None and conn.ws is not ws):
            return
        self._by_key.pop(key)
        if conn in self._all:
            self._all.remove(conn)

    async def send_to_user(self, key: str, payload: dict[str, Any]) -> bool:
        conn = self._by_key.get(key)
        if not conn:
            return False
        try:
            await conn.ws.send_json(payload)
            return True
        except Exception as e:
            logger.warning("send_to_user %s: %s", key, e)
            return False

    async def broadcast_win_tally(self, x_wins: int, o_wins: int) -> None:
        await self._broadcast(win_tally_payload(x_wins, o_wins))

    async def _broadcast(self, payload: dict[str, Any]) -> None:
        dead = []
        for conn in list(self._all):
            try:
                await conn.ws.send_json(payload)
            except Exception as e:
                logger.info("WS: broadcast to %s failed: %s", conn.key, e)
                dead.append(conn)
        for conn in dead:
            self.disconnect(conn.key, conn.ws)


def win_tally_payload(x_wins: int, o_wins: int) -> dict[str, Any]:
    return {"type": "win_tally", "x": x_wins, "o": o_wins}


manager = WSManager()
