"""Text and interaction dispatchers.

Both dispatchers resolve an event to a registered command, gate it,
and invoke its handler. Every classified failure after resolution goes
to the ErrorChannel; nothing is raised back to the caller. A check or
permission query that raises stops the dispatch with a warning log, and
a prefix function that raises drops the event the same way.

Text pipeline:
    filter -> prefix -> tokenize -> lookup -> gate (owner, client, user)
    -> checks -> arguments -> context -> handler

Interaction pipeline:
    filter -> lookup -> gate (client, user, owner) -> handler

Key classes:
    TextDispatcher: Prefix-delimited message commands.
    InteractionDispatcher: Pre-parsed slash command interactions.
    DispatchResult: Terminal state of one dispatch.
"""

from enum import Enum
from typing import Awaitable, Callable, Iterable, Optional, Union

import structlog

from .arguments import convert_arguments
from .checks import CheckAborted, run_checks
from .context import ExecutionContext
from .error_channel import ErrorChannel
from .exceptions import CommandError, ExecutionError
from .gate import CapabilityGate, GateOrder, PermissionQueryFailed
from .models import InteractionEvent, MessageEvent
from .registry import CommandRegistry
from .utils import maybe_await

logger = structlog.get_logger("cmdwire.dispatch")

# Fixed prefix, or (event) -> prefix computed per message
Prefix = Union[str, Callable[[MessageEvent], Union[str, Awaitable[str]]]]


class DispatchResult(str, Enum):
    """How a single dispatch ended."""
    IGNORED = "ignored"  # filtered, no prefix, or unknown command
    ABORTED = "aborted"  # a check or permission query raised; nothing reported
    FAILED = "failed"    # an ErrorReport was emitted
    SUCCESS = "success"  # handler returned normally


class TextDispatcher:
    """Routes prefix-delimited text messages to registered commands.

    Args:
        registry: Command and converter lookup.
        gate: Capability gate (owner ids, permission query).
        errors: Sink for classified failures.
        prefix: Fixed prefix string or per-event prefix function.
        allow_self: Process messages authored by the bot itself.
        allow_bots: Process messages authored by other bots.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        gate: CapabilityGate,
        errors: ErrorChannel,
        prefix: Prefix = "!",
        *,
        allow_self: bool = False,
        allow_bots: bool = False,
    ):
        self.registry = registry
        self.gate = gate
        self.errors = errors
        self.prefix = prefix
        self.allow_self = allow_self
        self.allow_bots = allow_bots

    def _filtered(self, event: MessageEvent) -> bool:
        if not self.allow_self and event.author_id == self.gate.client_id:
            return True
        if not self.allow_bots and event.author_is_bot:
            return True
        return False

    async def resolve_prefix(self, event: MessageEvent) -> str:
        if callable(self.prefix):
            return await maybe_await(self.prefix(event))
        return self.prefix

    async def dispatch(self, event: MessageEvent) -> DispatchResult:
        """Process one message event end to end."""
        if self._filtered(event):
            return DispatchResult.IGNORED

        try:
            prefix = await self.resolve_prefix(event)
        except Exception as e:
            logger.warning(
                "prefix_resolution_failed",
                event_id=event.id,
                error=str(e),
                error_type=type(e).__name__,
            )
            return DispatchResult.IGNORED
        if not isinstance(prefix, str):
            logger.warning("prefix_not_a_string", event_id=event.id, type=type(prefix).__name__)
            return DispatchResult.IGNORED

        content = event.content
        if not content.startswith(prefix):
            return DispatchResult.IGNORED

        tokens = content[len(prefix):].split(" ")
        invoked_with = tokens.pop(0)
        if not invoked_with:
            return DispatchResult.IGNORED

        command = self.registry.lookup(invoked_with)
        if command is None:
            logger.debug("command_not_found", invoked_with=invoked_with)
            return DispatchResult.IGNORED

        try:
            await self.gate.run(GateOrder.TEXT, command, event.channel_id, event.author_id)
            await run_checks(command, event)
            arguments = await convert_arguments(command, tokens, event, self.registry)
        except (CheckAborted, PermissionQueryFailed):
            return DispatchResult.ABORTED
        except CommandError as e:
            await self.errors.emit(e, event, command)
            return DispatchResult.FAILED

        if command.uses_context:
            first = ExecutionContext(
                event=event, prefix=prefix, invoked_with=invoked_with, command=command,
            )
        else:
            first = event

        logger.info(
            "command_invoked",
            command=command.name,
            invoked_with=invoked_with,
            author="..." + event.author_id[-4:],
            arguments=len(arguments),
        )
        try:
            await maybe_await(command.handler(first, *arguments))
        except Exception as e:
            logger.warning(
                "command_failed",
                command=command.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.errors.emit(ExecutionError(command, e), event, command)
            return DispatchResult.FAILED

        return DispatchResult.SUCCESS


class InteractionDispatcher:
    """Routes slash command interactions to registered slash commands.

    Args:
        registry: Slash command lookup.
        gate: Capability gate.
        errors: Sink for classified failures.
        guild_ids: If set, only interactions from these guilds are handled.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        gate: CapabilityGate,
        errors: ErrorChannel,
        guild_ids: Optional[Iterable[str]] = None,
    ):
        self.registry = registry
        self.gate = gate
        self.errors = errors
        self.guild_ids = frozenset(guild_ids) if guild_ids is not None else None

    async def dispatch(self, interaction: InteractionEvent) -> DispatchResult:
        """Process one interaction event end to end."""
        if not interaction.is_command:
            return DispatchResult.IGNORED
        if self.guild_ids is not None and interaction.guild_id not in self.guild_ids:
            logger.debug("interaction_outside_guilds", guild_id=interaction.guild_id)
            return DispatchResult.IGNORED

        command = self.registry.get_slash_command(interaction.command_name)
        if command is None:
            logger.debug("slash_command_not_found", command=interaction.command_name)
            return DispatchResult.IGNORED

        try:
            await self.gate.run(
                GateOrder.INTERACTION, command, interaction.channel_id, interaction.user_id,
            )
        except PermissionQueryFailed:
            return DispatchResult.ABORTED
        except CommandError as e:
            await self.errors.emit(e, interaction, command)
            return DispatchResult.FAILED

        logger.info(
            "slash_command_invoked",
            command=command.name,
            user="..." + interaction.user_id[-4:],
        )
        try:
            await maybe_await(command.handler(interaction, interaction.options))
        except Exception as e:
            logger.warning(
                "slash_command_failed",
                command=command.name,
                error=str(e),
                error_type=type(e).__name__,
            )
            await self.errors.emit(ExecutionError(command, e), interaction, command)
            return DispatchResult.FAILED

        return DispatchResult.SUCCESS
