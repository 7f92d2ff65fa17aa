"""
FastAPI WebSocket server for the game session.
"""

import asyncio
import logging

import orjson
from fastapi import FastAPI, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware

from ..channel import QueueChannel
from ..errors import INTERNAL_ERROR, INVALID_EVENT, SendFailed, SessionHalted
from ..session import SessionCoordinator
from .events import (
    ErrorEvent, InboundEvent, LoginEvent, SubmitAnswerEvent,
    SubmitJudgementEvent, parse_inbound_event,
)

logger = logging.getLogger(__name__)


def create_app(session: SessionCoordinator) -> FastAPI:
    """Build the HTTP/WebSocket app serving one game session."""
    app = FastAPI(title="Card Czar Game Server", version="1.0.0")
    app.state.session = session

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],  # Configure appropriately for production
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        snapshot = session.snapshot()
        return {
            "status": "halted" if snapshot["halted"] else "healthy",
            "session": snapshot,
        }

    @app.websocket("/ws")
    async def websocket_endpoint(websocket: WebSocket):
        await serve_client(session, websocket)

    return app


async def serve_client(session: SessionCoordinator, websocket: WebSocket):
    """Pump one client's inbound frames into the session until it disconnects."""
    await websocket.accept()
    channel = QueueChannel()
    client_id = session.connect(channel)
    writer = asyncio.create_task(_forward_outbound(websocket, channel, client_id))

    try:
        while True:
            raw_data = await websocket.receive_text()

            try:
                event = parse_inbound_event(orjson.loads(raw_data))
            except ValueError as e:
                # Invalid event
                logger.warning(f"Invalid event from client #{client_id}: {e}")
                if not reply(channel, client_id, ErrorEvent(code=INVALID_EVENT, message=str(e))):
                    break
                continue

            try:
                handle_event(session, client_id, event)
            except SessionHalted as e:
                logger.error(f"Rejected {event.type.value} from client #{client_id}: {e}")
                if not reply(channel, client_id, ErrorEvent(code=INTERNAL_ERROR, message="The game session has stopped")):
                    break

    except WebSocketDisconnect:
        logger.info(f"Client #{client_id} disconnected")
    finally:
        try:
            session.on_disconnect(client_id)
        except SessionHalted as e:
            logger.error(f"Could not clean up after client #{client_id}: {e}")
        writer.cancel()


def reply(channel: QueueChannel, client_id: int, event: ErrorEvent) -> bool:
    """Send an event straight back to the client. Returns False once its channel is closed."""
    try:
        channel.send(event)
    except SendFailed as e:
        logger.info(f"Dropping {event.type.value} for client #{client_id}: {e}")
        return False
    return True


def handle_event(session: SessionCoordinator, client_id: int, event: InboundEvent):
    """Dispatch an inbound event to the session."""
    if isinstance(event, LoginEvent):
        return session.on_login(client_id, event.name)
    elif isinstance(event, SubmitAnswerEvent):
        return session.on_submit_answer(client_id, event.cards)
    elif isinstance(event, SubmitJudgementEvent):
        return session.on_submit_judgement(client_id, event.winning_player_id)
    else:
        raise ValueError(f"Unhandled event type: {type(event)}")


async def _forward_outbound(websocket: WebSocket, channel: QueueChannel, client_id: int):
    while True:
        event = await channel.get()
        try:
            await websocket.send_text(event.model_dump_json())
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.error(f"websocket send error for client #{client_id}: {e}")
            channel.close()
            return
