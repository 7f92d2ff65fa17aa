"""
Outbound event channels, one per connected client.
"""

import asyncio
from abc import ABC, abstractmethod

from pydantic import BaseModel

from .errors import SendFailed


class ClientChannel(ABC):
    """Abstract outbound side of a client connection."""

    @abstractmethod
    def send(self, event: BaseModel) -> None:
        """
        Hand an event to the client without blocking.

        Raises:
            SendFailed: if the client is gone
        """
        pass

    def close(self) -> None:
        """Stop accepting events. Later sends raise SendFailed."""
        pass


class QueueChannel(ClientChannel):
    """
    Channel backed by an unbounded asyncio queue.

    The session pushes events from inside its lock; a writer task owned by the
    transport drains the queue into the socket.
    """

    def __init__(self):
        self._queue: asyncio.Queue = asyncio.Queue()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, event: BaseModel) -> None:
        if self._closed:
            raise SendFailed("channel is closed")
        self._queue.put_nowait(event)

    def close(self) -> None:
        self._closed = True

    async def get(self) -> BaseModel:
        """Wait for the next queued event."""
        return await self._queue.get()

    def pending(self) -> int:
        return self._queue.qsize()
