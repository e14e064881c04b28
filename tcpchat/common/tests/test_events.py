"""
Tests for event dispatching
"""

import threading
import unittest
from unittest.mock import Mock
from ..events import (
    ChatListener, EventDispatcher, LoginResult, UserList, TextMessage,
    CommandError, MessageError, SupportedCommands, Joke, Disconnected,
    Unrecognized,
)

class RecordingListener(ChatListener):
    """Listener that records every callback it receives"""

    def __init__(self, name="listener", log=None):
        self.name = name
        self.log = log if log is not None else []

    def on_login_result(self, success, message):
        self.log.append((self.name, "login", success))

    def on_joke(self, joke):
        self.log.append((self.name, "joke", joke))

    def on_disconnect(self):
        self.log.append((self.name, "disconnect"))


class TestEventDispatcher(unittest.TestCase):
    """Test cases for EventDispatcher"""

    def setUp(self):
        self.dispatcher = EventDispatcher()

    def test_callbacks_per_event(self):
        """Test that each event reaches its matching callback"""
        listener = Mock(spec=ChatListener)
        self.dispatcher.subscribe(listener)
        message = TextMessage("bob", True, "hi")

        self.dispatcher.dispatch(LoginResult(True, "login successful"))
        self.dispatcher.dispatch(UserList(("a", "b")))
        self.dispatcher.dispatch(message)
        self.dispatcher.dispatch(CommandError("cmderr x"))
        self.dispatcher.dispatch(MessageError("msgerr y"))
        self.dispatcher.dispatch(SupportedCommands(("help",)))
        self.dispatcher.dispatch(Joke("ha "))
        self.dispatcher.dispatch(Disconnected())

        listener.on_login_result.assert_called_once_with(True, "login successful")
        listener.on_user_list.assert_called_once_with(["a", "b"])
        listener.on_message_received.assert_called_once_with(message)
        listener.on_command_error.assert_called_once_with("cmderr x")
        listener.on_message_error.assert_called_once_with("msgerr y")
        listener.on_supported_commands.assert_called_once_with(["help"])
        listener.on_joke.assert_called_once_with("ha ")
        listener.on_disconnect.assert_called_once_with()

    def test_unrecognized_not_dispatched(self):
        """Test that unrecognized responses reach no listener"""
        listener = Mock(spec=ChatListener)
        self.dispatcher.subscribe(listener)

        self.dispatcher.dispatch(Unrecognized("garbage"))

        self.assertEqual(listener.method_calls, [])

    def test_registration_order(self):
        """Test that listeners are notified in the order they registered"""
        log = []
        first = RecordingListener("first", log)
        second = RecordingListener("second", log)
        self.dispatcher.subscribe(first)
        self.dispatcher.subscribe(second)

        self.dispatcher.dispatch(Disconnected())

        self.assertEqual(log, [("first", "disconnect"), ("second", "disconnect")])

    def test_subscribe_twice(self):
        """Test that registering a listener twice has no effect"""
        listener = RecordingListener()
        self.dispatcher.subscribe(listener)
        self.dispatcher.subscribe(listener)

        self.dispatcher.dispatch(Joke("x "))

        self.assertEqual(len(self.dispatcher.listeners()), 1)
        self.assertEqual(listener.log, [("listener", "joke", "x ")])

    def test_unsubscribe(self):
        """Test removing listeners, including ones never registered"""
        listener = RecordingListener()
        self.dispatcher.subscribe(listener)
        self.dispatcher.unsubscribe(listener)
        self.dispatcher.unsubscribe(RecordingListener())

        self.dispatcher.dispatch(Disconnected())

        self.assertEqual(listener.log, [])
        self.assertEqual(self.dispatcher.listeners(), [])

    def test_remove_during_dispatch(self):
        """Test that a listener removed mid-dispatch misses the current event"""
        log = []
        second = RecordingListener("second", log)

        class Remover(RecordingListener):
            def on_joke(inner_self, joke):
                super().on_joke(joke)
                self.dispatcher.unsubscribe(second)

        first = Remover("first", log)
        self.dispatcher.subscribe(first)
        self.dispatcher.subscribe(second)

        self.dispatcher.dispatch(Joke("one "))
        self.dispatcher.dispatch(Joke("two "))

        self.assertEqual(log, [
            ("first", "joke", "one "),
            ("first", "joke", "two "),
        ])

    def test_add_during_dispatch(self):
        """Test that a listener added mid-dispatch starts with the next event"""
        log = []
        late = RecordingListener("late", log)

        class Adder(RecordingListener):
            def on_joke(inner_self, joke):
                super().on_joke(joke)
                self.dispatcher.subscribe(late)

        self.dispatcher.subscribe(Adder("first", log))

        self.dispatcher.dispatch(Joke("one "))
        self.dispatcher.dispatch(Joke("two "))

        self.assertEqual(log, [
            ("first", "joke", "one "),
            ("first", "joke", "two "),
            ("late", "joke", "two "),
        ])

    def test_concurrent_registration(self):
        """Test subscribing from many threads while dispatching"""
        listeners = [RecordingListener(str(i)) for i in range(50)]
        threads = [
            threading.Thread(target=self.dispatcher.subscribe, args=(l,))
            for l in listeners
        ]
        for thread in threads:
            thread.start()
            self.dispatcher.dispatch(Joke("x "))
        for thread in threads:
            thread.join()

        self.assertEqual(len(self.dispatcher.listeners()), 50)

    def test_default_listener_ignores_events(self):
        """Test that the base listener accepts every event"""
        self.dispatcher.subscribe(ChatListener())
        for event in [LoginResult(False, "login failed"), UserList(()),
                      TextMessage("a", False, "b"), CommandError("c"),
                      MessageError("m"), SupportedCommands(()), Joke(""),
                      Disconnected()]:
            with self.subTest(event=event):
                self.dispatcher.dispatch(event)

if __name__ == '__main__':
    unittest.main()
