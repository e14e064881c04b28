"""
Text Protocol Chat Client

Connects to a chat server, sends commands and turns the server's responses
into events for registered listeners.
"""

import logging
import threading
from typing import Optional

from ..common.connection import Connection, DEFAULT_CONNECT_TIMEOUT
from ..common.events import ChatListener, Disconnected, EventDispatcher, Unrecognized
from . import protocol

DEFAULT_HOST = 'localhost'
DEFAULT_PORT = 1300


class TCPChatClient:
    """
    Chat client for the text line protocol.

    Commands are sent from the caller's thread. Responses are read on a
    background thread started with start_listen_thread(), which keeps running
    until the connection is closed by either side. Each listening thread is
    bound to the session it was started on and never touches a later one.

    Attributes:
        host (str): Default server host used by connect()
        port (int): Default server port used by connect()
        connection (Connection): The TCP session
        dispatcher (EventDispatcher): Registered listeners
        _teardown_lock (threading.RLock): Makes disconnect() happen once
        _listen_thread (Optional[threading.Thread]): Background reader
    """

    def __init__(self, host: str = DEFAULT_HOST, port: int = DEFAULT_PORT,
                 connect_timeout: float = DEFAULT_CONNECT_TIMEOUT):
        """Initialize the chat client"""
        self.host = host
        self.port = port
        self.connection = Connection(connect_timeout)
        self.dispatcher = EventDispatcher()
        self.last_error: Optional[str] = None
        self._teardown_lock = threading.RLock()
        self._listen_thread: Optional[threading.Thread] = None
        logging.debug(f"Initialized client for {host}:{port}")

    def connect(self, host: Optional[str] = None, port: Optional[int] = None) -> bool:
        """
        Connect to a chat server.

        Args:
            host: Host name or IP address of the chat server, defaults to self.host
            port: TCP port of the chat server, defaults to self.port

        Returns:
            bool: True on success, False otherwise
        """
        if host is not None:
            self.host = host
        if port is not None:
            self.port = port

        if not self.connection.connect(self.host, self.port):
            self.last_error = f"Failed to connect to {self.host}:{self.port}"
            return False
        return True

    def disconnect(self):
        """
        Close the connection and notify listeners.

        Safe to call from any thread, including while the listening thread is
        tearing the connection down after a read failure. Only one caller
        closes the socket and fires the disconnect event; the others return
        without doing anything.
        """
        with self._teardown_lock:
            if not self.connection.is_active:
                return
            if self.connection.close():
                self.dispatcher.dispatch(Disconnected())

    def _disconnect_session(self, session: int):
        """Disconnect only if the given session is still the open one"""
        with self._teardown_lock:
            if not self.connection.is_current(session):
                logging.debug(f"Session {session} already closed")
                return
            self.disconnect()

    def is_connection_active(self) -> bool:
        return self.connection.is_active

    def _send(self, line: str) -> bool:
        if not self.connection.is_active:
            self._fail("Not connected to server")
            return False
        if not self.connection.write_line(line):
            self.last_error = "Failed to send command"
            return False
        return True

    def _fail(self, error: str):
        logging.error(error)
        self.last_error = error

    def try_login(self, username: str) -> bool:
        """
        Send a login request. The result arrives later as a login event.

        Args:
            username: Username to use

        Returns:
            bool: True if the request was sent
        """
        try:
            line = protocol.encode_login(username)
        except protocol.ProtocolError as e:
            self._fail(str(e))
            return False
        return self._send(line)

    def send_public_message(self, message: str) -> bool:
        """
        Send a message to all connected users.

        Args:
            message: Message to send

        Returns:
            bool: True if message sent, False on error
        """
        try:
            line = protocol.encode_public_message(message)
        except protocol.ProtocolError as e:
            self._fail(str(e))
            return False
        return self._send(line)

    def send_private_message(self, recipient: str, message: str) -> bool:
        """
        Send a private message to a single recipient.

        Args:
            recipient: Username of the chat user who should receive the message
            message: Message to send

        Returns:
            bool: True if message sent, False on error
        """
        if not self.connection.is_active:
            self._fail("Not connected to server")
            return False
        try:
            line = protocol.encode_private_message(recipient, message)
        except protocol.ProtocolError as e:
            self._fail(str(e))
            return False
        return self._send(line)

    def refresh_user_list(self) -> bool:
        """
        Ask the server for the connected users. The list arrives later as a
        user list event.
        """
        if not self.connection.is_active:
            return False
        return self._send(protocol.encode_command(protocol.Command.USERS))

    def ask_supported_commands(self) -> bool:
        """Ask the server which commands it supports"""
        if not self.connection.is_active:
            return False
        return self._send(protocol.encode_command(protocol.Command.HELP))

    def get_last_error(self) -> str:
        """
        Get the last error message.

        Returns:
            str: The error message, or "" if there has been no error
        """
        return self.last_error or ""

    def add_listener(self, listener: ChatListener):
        self.dispatcher.subscribe(listener)

    def remove_listener(self, listener: ChatListener):
        self.dispatcher.unsubscribe(listener)

    def start_listen_thread(self) -> bool:
        """
        Start reading server responses on a background thread.

        Returns:
            bool: False if there is no connection to listen on
        """
        if not self.connection.is_active:
            logging.error("Cannot listen: not connected to server")
            return False

        self._listen_thread = threading.Thread(
            target=self._parse_incoming_commands,
            args=(self.connection.session,),
            name="chat-listener",
            daemon=True
        )
        self._listen_thread.start()
        return True

    def join_listen_thread(self, timeout: Optional[float] = None):
        """Wait for the listening thread to finish"""
        if self._listen_thread is not None:
            self._listen_thread.join(timeout)

    def _parse_incoming_commands(self, session: int):
        """Read responses until the session is closed, notifying listeners"""
        logging.debug(f"Listening for server responses (session {session})")
        while self.connection.is_current(session):
            line = self.connection.read_line(session)
            if line is None:
                logging.info("Server connection lost")
                self._disconnect_session(session)
                break

            logging.debug(f"Received: {line}")
            event = protocol.decode_response(line)
            if event is None:
                continue
            if isinstance(event, Unrecognized):
                logging.warning(f"Could not understand response from server: {line}")
                self.last_error = f"Unrecognized response: {line}"
                continue
            self.dispatcher.dispatch(event)
        logging.debug(f"Stopped listening for server responses (session {session})")
