"""
WebSocket transport for the game: wire events and the FastAPI server.
"""

from .events import *
