"""
TCP Line Connection

Owns the socket of a single chat session and exposes it as a stream of
text lines.
"""

import socket
import logging
import threading
from typing import Optional

DEFAULT_CONNECT_TIMEOUT = 5.0


class Connection:
    """
    A single line-oriented TCP session.

    Reading happens on one thread while writing and closing may happen on
    others. State transitions are guarded by a lock; the blocking read is not.

    Attributes:
        connect_timeout (float): Seconds to wait for the TCP handshake
        session (int): Number of the current or most recent session, bumped
            by every successful connect()
        _sock (Optional[socket.socket]): The live socket, None when inactive
        _reader: Buffered text stream over the socket's input side
        _state_lock (threading.Lock): Guards open/close transitions
        _write_lock (threading.Lock): Keeps concurrent writes from interleaving
    """

    def __init__(self, connect_timeout: float = DEFAULT_CONNECT_TIMEOUT):
        self.connect_timeout = connect_timeout
        self.session = 0
        self._sock: Optional[socket.socket] = None
        self._reader = None
        self._state_lock = threading.Lock()
        self._write_lock = threading.Lock()

    @property
    def is_active(self) -> bool:
        """True while a session is open"""
        return self._sock is not None

    def connect(self, host: str, port: int) -> bool:
        """
        Open a session to the server.

        Args:
            host: Host name or IP address of the chat server
            port: TCP port of the chat server

        Returns:
            bool: True on success, False if already connected or the
            connection could not be established
        """
        with self._state_lock:
            if self._sock is not None:
                logging.error("Already connected, disconnect first")
                return False

            try:
                sock = socket.create_connection((host, port), timeout=self.connect_timeout)
            except OSError as e:
                logging.error(f"Failed to connect to server: {host}, Port: {port} ({e})")
                return False

            # No read timeout: an idle server simply leaves the reader waiting
            sock.settimeout(None)
            # Malformed bytes decode to U+FFFD instead of failing the read
            self._reader = sock.makefile('r', encoding='utf-8', errors='replace', newline='\n')
            self._sock = sock
            self.session += 1
            logging.info(f"Connected to {host}:{port} (session {self.session})")
            return True

    def close(self) -> bool:
        """
        Close the session.

        The socket is shut down before it is closed so that a thread blocked
        in read_line() wakes up with end-of-stream.

        Returns:
            bool: True if this call closed the session, False if there was
            no session to close
        """
        with self._state_lock:
            sock, reader = self._sock, self._reader
            if sock is None:
                return False
            self._sock = None
            self._reader = None

            try:
                sock.shutdown(socket.SHUT_RDWR)
            except OSError as e:
                # Peer already gone
                logging.debug(f"Socket shutdown failed: {e}")
            for stream in (reader, sock):
                try:
                    stream.close()
                except OSError as e:
                    logging.error(f"Could not close socket cleanly: {e}")

            logging.info("Connection closed")
            return True

    def write_line(self, line: str) -> bool:
        """
        Send one line to the server, terminated by a newline.

        Args:
            line: The line to send, without the terminator

        Returns:
            bool: True if the line was sent
        """
        sock = self._sock
        if sock is None:
            logging.error("Not connected to server")
            return False
        if not line:
            logging.error("Command cannot be empty")
            return False

        try:
            with self._write_lock:
                sock.sendall((line + '\n').encode('utf-8'))
            logging.debug(f"Sent: {line}")
            return True
        except OSError as e:
            logging.error(f"Failed to send command: {e}")
            return False

    def is_current(self, session: int) -> bool:
        """True if the given session is the one currently open"""
        return self._sock is not None and self.session == session

    def read_line(self, session: Optional[int] = None) -> Optional[str]:
        """
        Block until one full line arrives.

        Args:
            session: If given, read only if this session is still the open
                one, so a reader left over from a closed session never
                reads from a newer one

        Returns:
            The line without its terminator, or None on end-of-stream, a
            read error or a session mismatch. Teardown is left to the caller.
        """
        with self._state_lock:
            reader = self._reader
            if session is not None and session != self.session:
                return None
        if reader is None:
            return None

        try:
            line = reader.readline()
        except (OSError, ValueError) as e:
            # ValueError: the stream was closed under us
            logging.debug(f"Failed to read server response: {e}")
            return None

        if not line:
            return None
        return line.rstrip('\r\n')
