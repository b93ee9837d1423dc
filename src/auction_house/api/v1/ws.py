"""WebSocket endpoint for real-time auction updates."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from auction_house.schemas.ws import ClientMessage
from auction_house.services.ws_manager import manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    """WebSocket endpoint for auction events.

    Connection URL: ws://host/ws

    Client sends (JSON):
    - {"type": "AUTH", "user_id": 1}: receive OUTBID events for that user
    - {"type": "JOIN_AUCTION", "auction_id": 7}: subscribe to NEW_BID / AUCTION_CLOSED
    - {"type": "LEAVE_AUCTION", "auction_id": 7}
    - ping: server responds with pong (heartbeat)

    Malformed messages are ignored.
    """
    await manager.connect(websocket)

    try:
        while True:
            data = await websocket.receive_text()

            if data == "ping":
                await websocket.send_text("pong")
                continue

            try:
                message = ClientMessage.model_validate_json(data)
            except ValidationError:
                continue

            if message.type == "AUTH" and message.user_id:
                manager.authenticate(message.user_id, websocket)
            elif message.type == "JOIN_AUCTION" and message.auction_id:
                manager.join(message.auction_id, websocket)
            elif message.type == "LEAVE_AUCTION" and message.auction_id:
                manager.leave(message.auction_id, websocket)

    except WebSocketDisconnect:
        logger.info("WebSocket disconnected")
    except Exception as e:
        logger.error(f"WebSocket error: {e}")
    finally:
        manager.disconnect(websocket)
