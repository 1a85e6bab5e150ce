"""Execution context passed to handlers that ask for one."""

from dataclasses import dataclass
from typing import Optional

from .models import Command, MessageEvent


@dataclass(frozen=True)
class ExecutionContext:
    """Immutable per-dispatch wrapper around a message event.

    Attributes:
        event: The originating message.
        prefix: The prefix the message was invoked with.
        invoked_with: The command name or alias as typed.
        command: The resolved command.
    """

    event: MessageEvent
    prefix: str
    invoked_with: str = ""
    command: Optional[Command] = None

    @property
    def author_id(self) -> str:
        return self.event.author_id

    @property
    def channel_id(self) -> str:
        return self.event.channel_id

    @property
    def guild_id(self) -> Optional[str]:
        return self.event.guild_id

    @property
    def content(self) -> str:
        return self.event.content
