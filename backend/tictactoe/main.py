"""
Tic-tac-toe API и WebSocket.
"""
import logging
from pathlib import Path

from fastapi import FastAPI, WebSocket
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import get_config
from .recorder import get_recorder
from .ws_handlers import ws_auth_and_loop

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="Tic-tac-toe API")
config = get_config()

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/health")
def health():
    return {"status": "ok"}


@app.get("/api/tally")
async def tally():
    x_wins, o_wins = await get_recorder().fetch_win_tally()
    return {"x": x_wins, "o": o_wins}


@app.websocket("/ws")
async def websocket_endpoint(ws: WebSocket):
    logger.info("WS: connection attempt from %s", ws.client)
    await ws_auth_and_loop(ws)


# Статика фронтенда (для разработки)
frontend_path = Path(__file__).resolve().parent.parent.parent / "frontend"
if frontend_path.is_dir():
    app.mount("/", StaticFiles(directory=str(frontend_path), html=True), name="frontend")
