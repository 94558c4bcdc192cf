import asyncio
import logging
from typing import Any, Dict, List, Set

from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)


async def send_event(websocket: WebSocket, event: str, data: Any) -> None:
    await websocket.send_json({"event": event, "data": jsonable_encoder(data)})


class RoomManager:
    """
    In-memory table of course rooms for this process.

    Nothing here is persisted: after a restart every client has to send
    ``join-course`` again. Each room also owns a lock that is held while a
    message is stored and broadcast, so listeners see messages in the order
    they were saved.
    """

    def __init__(self):
        self.rooms: Dict[int, Set[WebSocket]] = {}
        self.locks: Dict[int, asyncio.Lock] = {}

    def lock(self, course_id: int) -> asyncio.Lock:
        if course_id not in self.locks:
            self.locks[course_id] = asyncio.Lock()
        return self.locks[course_id]

    def join(self, course_id: int, websocket: WebSocket) -> None:
        self.rooms.setdefault(course_id, set()).add(websocket)

    def leave(self, course_id: int, websocket: WebSocket) -> None:
        members = self.rooms.get(course_id)
        if members is None:
            return
        members.discard(websocket)
        # drop empty rooms to save RAM
        if not members:
            del self.rooms[course_id]

    def leave_all(self, websocket: WebSocket) -> List[int]:
        left = [course_id for course_id, members in self.rooms.items() if websocket in members]
        for course_id in left:
            self.leave(course_id, websocket)
        return left

    def members(self, course_id: int) -> Set[WebSocket]:
        return set(self.rooms.get(course_id, set()))

    async def broadcast(self, course_id: int, event: str, data: Any) -> int:
        delivered = 0
        # iterate over a copy, dead sockets are removed while looping
        for connection in self.members(course_id):
            try:
                await send_event(connection, event, data)
                delivered += 1
            except Exception as exc:
                logger.info("Dropping dead connection from course room %s: %s", course_id, exc)
                self.leave(course_id, connection)
        return delivered


manager = RoomManager()
