"""
tcpchat - client for a line-based TCP chat protocol.
"""

from .common.events import ChatListener, TextMessage
from .text_protocol.client import TCPChatClient

__all__ = ["ChatListener", "TCPChatClient", "TextMessage"]
