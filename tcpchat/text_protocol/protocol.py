"""
Text Line Protocol Implementation

Defines the line-based text protocol spoken with the chat server. Every
message is a single UTF-8 line of space separated words, with the command
word first.
"""

from enum import Enum
from typing import List, Optional

from ..common.events import (
    Event, LoginResult, UserList, TextMessage, CommandError, MessageError,
    SupportedCommands, Joke, Unrecognized,
)


class ProtocolError(ValueError):
    """Raised when a command cannot be encoded from the given arguments"""


class Command(Enum):
    """Commands the client sends to the server"""
    LOGIN = "login"
    PRIVMSG = "privmsg"
    USERS = "users"
    HELP = "help"


class Response(Enum):
    """Response words the server sends to the client"""
    LOGIN_OK = "loginok"
    LOGIN_ERR = "loginerr"
    USERS = "users"
    PRIVMSG = "privmsg"
    MSG = "msg"
    SUPPORTED = "supported"
    CMD_ERR = "cmderr"
    MSG_ERR = "msgerr"
    MODE_OK = "modeok"
    MSG_OK = "msgok"
    JOKE = "joke"


def _check_single_line(value: str, name: str):
    # A line break would end the command early and start another one
    if "\n" in value or "\r" in value:
        raise ProtocolError(f"{name} cannot contain line breaks")


def encode_login(username: str) -> str:
    """
    Encode a login request.

    Raises:
        ProtocolError: If the username is missing, blank or spans lines
    """
    if username is None:
        raise ProtocolError("Username cannot be null")
    if not username.strip():
        raise ProtocolError("Username cannot be blank")
    _check_single_line(username, "Username")
    return f"{Command.LOGIN.value} {username}"


def encode_public_message(message: str) -> str:
    """
    Encode a message to everyone. The message text is sent as-is.

    Raises:
        ProtocolError: If the message is missing, empty or spans lines
    """
    if message is None:
        raise ProtocolError("Public message cannot be null")
    if not message:
        raise ProtocolError("Public message cannot be empty")
    _check_single_line(message, "Public message")
    return message


def encode_private_message(recipient: str, message: str) -> str:
    """
    Encode a message to a single recipient.

    Args:
        recipient: Username of the chat user who should receive the message
        message: Message text

    Returns:
        str: The protocol line

    Raises:
        ProtocolError: If the recipient or message is missing, empty or
            spans lines
    """
    if recipient is None:
        raise ProtocolError("Recipient cannot be null")
    if not recipient:
        raise ProtocolError("Recipient cannot be empty")
    if message is None:
        raise ProtocolError("Message cannot be null")
    if not message:
        raise ProtocolError("Message cannot be empty")
    _check_single_line(recipient, "Recipient")
    _check_single_line(message, "Message")
    return f"{Command.PRIVMSG.value} {recipient} {message}"


def encode_command(command: Command) -> str:
    """Encode a command that takes no arguments (users, help)"""
    if command not in (Command.USERS, Command.HELP):
        raise ProtocolError(f"{command.value} requires arguments")
    return command.value


def tokenize(line: str) -> List[str]:
    """
    Split a line on single spaces.

    There is no quoting. Consecutive spaces yield empty words, but empty
    words at the end of the line are dropped.
    """
    tokens = line.split(' ')
    while len(tokens) > 1 and tokens[-1] == '':
        tokens.pop()
    return tokens


def decode_response(line: str) -> Optional[Event]:
    """
    Decode one line received from the server.

    Args:
        line: The raw line, without its terminator

    Returns:
        The decoded event, or None for acknowledgements that need no event
        (modeok, msgok). Lines that cannot be understood decode to
        Unrecognized.
    """
    tokens = tokenize(line)
    try:
        response = Response(tokens[0])
    except ValueError:
        return Unrecognized(line)
    args = tokens[1:]

    if response == Response.LOGIN_OK:
        return LoginResult(True, "login successful")
    elif response == Response.LOGIN_ERR:
        return LoginResult(False, "login failed")
    elif response == Response.USERS:
        return UserList(tuple(args))
    elif response in (Response.PRIVMSG, Response.MSG):
        if len(args) < 2:
            return Unrecognized(line)
        # Only the first word of the text is kept; the server's framing puts
        # no boundary around a multi-word body.
        return TextMessage(args[0], response == Response.PRIVMSG, args[1])
    elif response == Response.SUPPORTED:
        return SupportedCommands(tuple(args))
    elif response == Response.CMD_ERR:
        return CommandError(line)
    elif response == Response.MSG_ERR:
        return MessageError(line)
    elif response in (Response.MODE_OK, Response.MSG_OK):
        return None
    elif response == Response.JOKE:
        return Joke(''.join(word + ' ' for word in args))
    return Unrecognized(line)
