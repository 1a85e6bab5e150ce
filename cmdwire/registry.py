"""Command registry.

Read-mostly store of text commands, aliases, slash commands, and
argument converters. Populated during module load, then only read by
the dispatchers.

Key classes:
    CommandRegistry: Name/alias/type-tag keyed lookup tables.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Dict, List, Optional, Set

import structlog

from .exceptions import RegistrationError
from .models import ArgumentConverter, Check, Command, SlashCommand

if TYPE_CHECKING:
    from .module_base import CommandModule

logger = structlog.get_logger("cmdwire.registry")


class CommandRegistry:
    """Maps names, aliases and type tags to registered objects.

    Command names and aliases share one case-insensitive namespace:
    registering a command whose name or alias is already taken fails.
    Converters follow last-registration-wins; an override is logged.
    """

    def __init__(self):
        self._commands: Dict[str, Command] = {}
        self._aliases: Dict[str, str] = {}
        self._slash_commands: Dict[str, SlashCommand] = {}
        self._converters: Dict[str, ArgumentConverter] = {}

    def _taken(self, key: str) -> Optional[str]:
        if key in self._commands:
            return self._commands[key].name
        if key in self._aliases:
            return self._commands[self._aliases[key]].name
        return None

    def _claim_keys(self, command: Command, pending: Dict[str, str]) -> List[str]:
        """Validate a command's name and aliases; return the alias keys.

        ``pending`` holds keys claimed earlier in the same batch and is
        updated in place. Nothing in the registry is changed.

        Raises:
            RegistrationError: If the name or any alias is already taken,
                or the command lists the same alias as its own name.
        """
        name_key = command.name.lower()
        owner = self._taken(name_key) or pending.get(name_key)
        if owner is not None:
            raise RegistrationError(
                f"Command name '{command.name}' is already registered",
                command=command.name, existing=owner,
            )
        pending[name_key] = command.name

        alias_keys = []
        for alias in command.aliases:
            key = alias.lower()
            owner = self._taken(key) or pending.get(key)
            if owner is not None:
                raise RegistrationError(
                    f"Alias '{alias}' is already registered",
                    command=command.name, existing=owner,
                )
            pending[key] = command.name
            alias_keys.append(key)
        return alias_keys

    def _claim_slash_name(self, command: SlashCommand, pending: Set[str]) -> None:
        if command.name in self._slash_commands or command.name in pending:
            raise RegistrationError(
                f"Slash command '{command.name}' is already registered",
                command=command.name,
            )
        pending.add(command.name)

    def _commit_command(self, command: Command, alias_keys: List[str]) -> None:
        name_key = command.name.lower()
        self._commands[name_key] = command
        for key in alias_keys:
            self._aliases[key] = name_key
        logger.debug(
            "command_registered",
            command=command.name,
            aliases=sorted(command.aliases),
            parameters=len(command.parameters),
        )

    def _commit_slash_command(self, command: SlashCommand) -> None:
        self._slash_commands[command.name] = command
        logger.debug("slash_command_registered", command=command.name)

    def register_command(self, command: Command) -> None:
        """Register a text command and its aliases.

        Raises:
            RegistrationError: If the name or any alias is already taken,
                or the command lists the same alias as its own name.
        """
        alias_keys = self._claim_keys(command, {})
        self._commit_command(command, alias_keys)

    def register_slash_command(self, command: SlashCommand) -> None:
        """Register an interaction command.

        Raises:
            RegistrationError: If a slash command with this name exists.
        """
        self._claim_slash_name(command, set())
        self._commit_slash_command(command)

    def register_converter(self, converter: ArgumentConverter) -> None:
        """Associate a type tag with a converter. Last registration wins."""
        previous = self._converters.get(converter.type)
        if previous is not None:
            logger.warning(
                "converter_overridden",
                type=converter.type,
                previous=type(previous.module).__name__ if previous.module else None,
                module=type(converter.module).__name__ if converter.module else None,
            )
        self._converters[converter.type] = converter

    def add_check(self, command_name: str, check: Check) -> None:
        """Append a predicate to a registered command's check list.

        Raises:
            RegistrationError: If no command has this name or alias.
        """
        command = self.lookup(command_name)
        if command is None:
            raise RegistrationError(
                f"Cannot add check to unknown command '{command_name}'",
                command=command_name,
            )
        command.checks.append(check)

    def register_module(self, module: "CommandModule") -> None:
        """Register everything a module declares, or nothing.

        Every name, alias and slash name is validated against the registry
        and the rest of the batch before anything is stored.

        Args:
            module: Module instance whose commands(), slash_commands()
                and converters() lists are merged into the registry.

        Raises:
            RegistrationError: On the first collision; the registry is
                left unchanged.
        """
        commands = module.commands()
        slash_commands = module.slash_commands()
        converters = module.converters()

        pending_keys: Dict[str, str] = {}
        claimed = [(command, self._claim_keys(command, pending_keys)) for command in commands]
        pending_slash: Set[str] = set()
        for slash in slash_commands:
            self._claim_slash_name(slash, pending_slash)

        for converter in converters:
            self.register_converter(converter)
        for command, alias_keys in claimed:
            self._commit_command(command, alias_keys)
        for slash in slash_commands:
            self._commit_slash_command(slash)
        logger.info(
            "module_registered",
            module=module.name or type(module).__name__,
            commands=[c.name for c in commands],
            slash_commands=[c.name for c in slash_commands],
            converters=[c.type for c in converters],
        )

    def lookup(self, token: str) -> Optional[Command]:
        """Find a command by case-insensitive name or alias."""
        key = token.lower()
        command = self._commands.get(key)
        if command is not None:
            return command
        name = self._aliases.get(key)
        if name is not None:
            return self._commands[name]
        return None

    def get_slash_command(self, name: str) -> Optional[SlashCommand]:
        """Find a slash command by exact name."""
        return self._slash_commands.get(name)

    def converter_for(self, type_tag: str) -> Optional[ArgumentConverter]:
        """Return the converter registered for a type tag, if any."""
        return self._converters.get(type_tag)

    @property
    def commands(self) -> List[Command]:
        return list(self._commands.values())

    @property
    def slash_commands(self) -> List[SlashCommand]:
        return list(self._slash_commands.values())

    @property
    def converters(self) -> List[ArgumentConverter]:
        return list(self._converters.values())

    @property
    def command_names(self) -> frozenset:
        """All registered command names (lowercased)."""
        return frozenset(self._commands.keys())
