"""
Chat Events

Typed events decoded from server responses, the listener interface that
receives them, and the dispatcher that fans them out to registered listeners.
"""

import logging
import threading
from dataclasses import dataclass
from typing import List, Tuple, Union


@dataclass(frozen=True)
class LoginResult:
    """
    Outcome of a login request.

    Attributes:
        success: True when the server accepted the username
        message: Human readable description of the outcome
    """
    success: bool
    message: str


@dataclass(frozen=True)
class UserList:
    """Usernames currently connected, in the order the server sent them"""
    usernames: Tuple[str, ...]


@dataclass(frozen=True)
class TextMessage:
    """
    A chat message received from another user.

    Attributes:
        sender: Username of the sender
        private: True when the message was sent only to us
        text: Message text
    """
    sender: str
    private: bool
    text: str


@dataclass(frozen=True)
class CommandError:
    """Server did not understand a command. Holds the full response line."""
    raw: str


@dataclass(frozen=True)
class MessageError:
    """Server could not deliver a message. Holds the full response line."""
    raw: str


@dataclass(frozen=True)
class SupportedCommands:
    commands: Tuple[str, ...]


@dataclass(frozen=True)
class Joke:
    text: str


@dataclass(frozen=True)
class Disconnected:
    """The session was closed, either locally or by the remote end"""


@dataclass(frozen=True)
class Unrecognized:
    """A server line that could not be decoded. Never sent to listeners."""
    raw: str


Event = Union[LoginResult, UserList, TextMessage, CommandError, MessageError,
              SupportedCommands, Joke, Disconnected, Unrecognized]


class ChatListener:
    """
    Receives chat events from a client.

    Every callback is a no-op here, so subclasses only override the events
    they care about. Callbacks run on the client's listening thread and must
    not raise.

    on_disconnect() runs while the client holds its teardown lock, possibly
    on the thread that called disconnect(). It may call disconnect() again,
    but must not wait for the listening thread (join_listen_thread()): that
    thread may itself be waiting for the teardown lock.
    """

    def on_login_result(self, success: bool, message: str):
        pass

    def on_user_list(self, usernames: List[str]):
        pass

    def on_message_received(self, message: TextMessage):
        pass

    def on_message_error(self, error: str):
        pass

    def on_command_error(self, error: str):
        pass

    def on_supported_commands(self, commands: List[str]):
        pass

    def on_joke(self, joke: str):
        pass

    def on_disconnect(self):
        pass


class EventDispatcher:
    """
    Keeps the registered listeners and delivers events to them.

    Listeners are held in registration order and compared by identity.
    Dispatch iterates a snapshot of the listeners, so listeners may be added
    or removed from any thread, including from inside a callback.

    Attributes:
        _listeners (List[ChatListener]): Registered listeners
        _lock (threading.Lock): Guards the listener list
    """

    def __init__(self):
        self._listeners: List[ChatListener] = []
        self._lock = threading.Lock()

    def subscribe(self, listener: ChatListener):
        """Register a listener. Registering the same listener twice has no effect."""
        with self._lock:
            if not any(existing is listener for existing in self._listeners):
                self._listeners.append(listener)

    def unsubscribe(self, listener: ChatListener):
        """Unregister a listener if it is registered"""
        with self._lock:
            self._listeners = [l for l in self._listeners if l is not listener]

    def listeners(self) -> List[ChatListener]:
        with self._lock:
            return list(self._listeners)

    def _is_subscribed(self, listener: ChatListener) -> bool:
        with self._lock:
            return any(existing is listener for existing in self._listeners)

    def dispatch(self, event: Event):
        """
        Deliver an event to every registered listener, in registration order.

        Runs synchronously on the calling thread. A listener unsubscribed
        while the dispatch is in progress is not called if it has not been
        reached yet.

        Args:
            event: The decoded event to deliver
        """
        if isinstance(event, Unrecognized):
            logging.debug(f"Not dispatching unrecognized response: {event.raw}")
            return

        for listener in self.listeners():
            if self._is_subscribed(listener):
                self._notify(listener, event)

    def _notify(self, listener: ChatListener, event: Event):
        if isinstance(event, LoginResult):
            listener.on_login_result(event.success, event.message)
        elif isinstance(event, UserList):
            listener.on_user_list(list(event.usernames))
        elif isinstance(event, TextMessage):
            listener.on_message_received(event)
        elif isinstance(event, CommandError):
            listener.on_command_error(event.raw)
        elif isinstance(event, MessageError):
            listener.on_message_error(event.raw)
        elif isinstance(event, SupportedCommands):
            listener.on_supported_commands(list(event.commands))
        elif isinstance(event, Joke):
            listener.on_joke(event.text)
        elif isinstance(event, Disconnected):
            listener.on_disconnect()
        else:
            raise TypeError(f"Unknown event type: {type(event).__name__}")
