"""Websocket feed of order events.

Every connection receives ``order:new`` broadcasts. Sending
``{"action": "join", "orderId": 7}`` additionally subscribes it to status
updates for order 7 until it sends the matching ``leave``.
"""
import asyncio
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from ..events import Event, order_room

logger = logging.getLogger(__name__)

router = APIRouter()

ACTIONS = {"join": "joined", "leave": "left"}
# pending messages per connection; events beyond this are dropped
OUTBOX_SIZE = 256


def _room_for(message) -> str:
    if not isinstance(message, dict) or message.get("action") not in ACTIONS:
        raise ValueError("Expected {\"action\": \"join\" | \"leave\", \"orderId\": <id>}")
    order_id = message.get("orderId")
    if isinstance(order_id, bool) or not isinstance(order_id, int):
        raise ValueError("orderId must be an integer")
    return order_room(order_id)


def _offer(outbox: asyncio.Queue, payload: dict) -> bool:
    try:
        outbox.put_nowait(payload)
    except asyncio.QueueFull:
        logger.warning("Websocket client too slow, dropped %s", payload.get("event"))
        return False
    return True


async def _pump(websocket: WebSocket, outbox: asyncio.Queue) -> None:
    # single writer so acks and events never interleave mid-frame
    while True:
        await websocket.send_json(await outbox.get())


async def _listen(websocket: WebSocket, sub, outbox: asyncio.Queue) -> None:
    while True:
        try:
            message = await websocket.receive_json()
        except ValueError:
            await outbox.put({"event": "error", "message": "Invalid JSON"})
            continue
        try:
            room = _room_for(message)
        except ValueError as e:
            await outbox.put({"event": "error", "message": str(e)})
            continue
        if message["action"] == "join":
            sub.join(room)
        else:
            sub.leave(room)
        await outbox.put({"event": ACTIONS[message["action"]], "room": room})


@router.websocket("/ws")
async def order_events(websocket: WebSocket):
    events = websocket.app.state.events
    loop = asyncio.get_running_loop()
    outbox: asyncio.Queue = asyncio.Queue(maxsize=OUTBOX_SIZE)

    # publishers run on worker threads, hand the event over to this loop
    def deliver(event: Event) -> None:
        loop.call_soon_threadsafe(_offer, outbox, event.to_dict())

    # subscribe before accepting so nothing published after the handshake is missed
    sub = events.subscribe(deliver)
    tasks = []
    try:
        await websocket.accept()
        logger.info("Websocket client connected (%d subscribers)", events.subscriber_count())
        tasks = [
            asyncio.create_task(_pump(websocket, outbox)),
            asyncio.create_task(_listen(websocket, sub, outbox)),
        ]
        done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for task in done:
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                logger.error("Websocket connection failed: %s", exc)
    finally:
        events.unsubscribe(sub)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("Websocket client disconnected")
