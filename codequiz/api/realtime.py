"""
Realtime session feed over WebSocket

Streams change events for one session document and its teams. The first
messages are the current snapshot; afterwards only the latest state of each
changed document is sent. Closing the socket unsubscribes.
"""
import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from codequiz import state
from codequiz.core.errors import NotFoundError
from codequiz.core.events import REMOVED, ChangeEvent, Subscription
from codequiz.core.session import SESSIONS, get_session_state, teams_path


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


def _session_payload(event: ChangeEvent) -> dict:
    """Session events carry the participant read model instead of the raw document"""
    payload = event.to_dict()
    if event.kind != REMOVED:
        try:
            payload["data"] = get_session_state(state.STORE, event.doc_id)
        except NotFoundError:
            payload.update({"kind": REMOVED, "data": None})
    return payload


async def _forward(ws: WebSocket, sub: Subscription, send_lock: asyncio.Lock, doc_id: Optional[str] = None):
    while not sub.closed:
        events = await sub.get()
        for event in events:
            if doc_id is not None and event.doc_id != doc_id:
                continue
            payload = _session_payload(event) if event.topic == SESSIONS else event.to_dict()
            async with send_lock:
                await ws.send_json(payload)


@router.websocket("/ws/sessions/{session_id}")
async def session_feed(ws: WebSocket, session_id: str):
    if state.STORE.get(SESSIONS, session_id) is None:
        await ws.close(code=4404)
        return
    await ws.accept()

    session_sub = state.STORE.watch(SESSIONS)
    teams_sub = state.STORE.watch(teams_path(session_id))
    send_lock = asyncio.Lock()
    tasks = [
        asyncio.create_task(_forward(ws, session_sub, send_lock, doc_id=session_id)),
        asyncio.create_task(_forward(ws, teams_sub, send_lock)),
    ]
    logger.info(f"📡 Realtime subscriber connected to session {session_id}")

    try:
        # Client messages are only keep-alives
        while True:
            text = await ws.receive_text()
            if text == "ping":
                async with send_lock:
                    await ws.send_json({"type": "pong"})
    except WebSocketDisconnect:
        pass
    finally:
        session_sub.close()
        teams_sub.close()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info(f"📴 Realtime subscriber left session {session_id}")
