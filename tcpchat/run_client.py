"""
Chat Client Runner

Connects to a chat server and runs an interactive console session.
"""

import argparse
import logging
import sys
from typing import List

from tcpchat.common.events import ChatListener, TextMessage
from tcpchat.text_protocol.client import TCPChatClient, DEFAULT_HOST, DEFAULT_PORT

HELP_TEXT = """Available commands:
  /login <username>          log in
  /users                     list connected users
  /help                      ask the server for supported commands
  /privmsg <user> <message>  send a private message
  /quit                      disconnect and exit
  anything else              send a public message"""


class ConsoleListener(ChatListener):
    """Prints chat events to the console"""

    def __init__(self, out=None):
        self.out = out or sys.stdout

    def _print(self, text: str):
        print(text, file=self.out, flush=True)

    def on_login_result(self, success: bool, message: str):
        self._print(f"* {message}")

    def on_user_list(self, usernames: List[str]):
        self._print(f"* Users online: {', '.join(usernames)}")

    def on_message_received(self, message: TextMessage):
        prefix = "(private) " if message.private else ""
        self._print(f"{prefix}{message.sender}: {message.text}")

    def on_message_error(self, error: str):
        self._print(f"! {error}")

    def on_command_error(self, error: str):
        self._print(f"! {error}")

    def on_supported_commands(self, commands: List[str]):
        self._print(f"* Server supports: {' '.join(commands)}")

    def on_joke(self, joke: str):
        self._print(f"* Joke: {joke}")

    def on_disconnect(self):
        self._print("* Disconnected from server")


def handle_input(client: TCPChatClient, line: str) -> bool:
    """
    Act on one line typed by the user.

    Returns:
        bool: False when the user asked to quit
    """
    line = line.rstrip('\n')
    if not line:
        return True

    word, _, rest = line.partition(' ')
    if word == "/quit":
        return False
    elif word == "/login":
        ok = client.try_login(rest.strip())
    elif word == "/users":
        ok = client.refresh_user_list()
    elif word == "/help":
        ok = client.ask_supported_commands()
    elif word == "/privmsg":
        recipient, _, message = rest.partition(' ')
        ok = client.send_private_message(recipient, message)
    elif word == "/?":
        print(HELP_TEXT)
        return True
    else:
        ok = client.send_public_message(line)

    if not ok:
        print(f"! {client.get_last_error()}")
    return True


def main_loop(client: TCPChatClient, stdin=None):
    """Read console input until quit, end of input or server disconnect"""
    stdin = stdin or sys.stdin
    print(HELP_TEXT)
    for line in stdin:
        if not handle_input(client, line):
            break
        if not client.is_connection_active():
            break


def main():
    """Main entry point for the chat client"""
    parser = argparse.ArgumentParser(description="Chat client (text line protocol)")
    parser.add_argument("--host", default=DEFAULT_HOST, help="Server host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="Server port")
    parser.add_argument("--username", help="Log in with this username after connecting")
    parser.add_argument("--timeout", type=float, default=5.0, help="Connect timeout in seconds")
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level"
    )
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    client = TCPChatClient(args.host, args.port, connect_timeout=args.timeout)
    client.add_listener(ConsoleListener())
    if not client.connect():
        print(f"Error: {client.get_last_error()}")
        sys.exit(1)

    try:
        client.start_listen_thread()
        if args.username:
            client.try_login(args.username)
        main_loop(client)
    except KeyboardInterrupt:
        print("\nShutting down client...")
    finally:
        client.disconnect()
        client.join_listen_thread(timeout=2.0)


if __name__ == "__main__":
    main()
