from typing import Any, Optional, Protocol

import socketio


class Transport(Protocol):
    async def enter_room(self, sid: str, room: str) -> None: ...

    async def send(self, sid: str, event: str, data: dict) -> None: ...

    async def broadcast(self, room: str, event: str, data: dict, skip_sid: Optional[str] = None) -> None: ...


class SocketIOTransport:
    """Room-addressable fan-out on top of a Socket.IO server.

    Socket.IO drops a sid from all its rooms on disconnect, so membership
    needs no bookkeeping here.
    """

    def __init__(self, sio: socketio.AsyncServer):
        self.sio = sio

    async def enter_room(self, sid: str, room: str) -> None:
        await self.sio.enter_room(sid, room)

    async def send(self, sid: str, event: str, data: Any) -> None:
        await self.sio.emit(event, data, to=sid)

    async def broadcast(self, room: str, event: str, data: Any, skip_sid: Optional[str] = None) -> None:
        # skip_sid=None includes every member, the sender too
        await self.sio.emit(event, data, room=room, skip_sid=skip_sid)
