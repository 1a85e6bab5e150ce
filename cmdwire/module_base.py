"""Module base class and builders for declaring commands.

A command module groups related commands, slash commands, and argument
converters. Modules declare what they provide by returning lists from
commands(), slash_commands() and converters(); the builders below keep
those declarations short:

    class Math(CommandModule):
        name = "math"

        def commands(self):
            return [
                command("add", self.add).param(NUMBER).param(NUMBER).alias("plus").build(),
            ]

        async def add(self, msg, a, b):
            ...
"""

import os
from typing import Any, List, Optional

import structlog

from .models import (
    STRING,
    ArgumentConverter,
    Check,
    Command,
    ConvertFn,
    Handler,
    Parameter,
    SlashCommand,
)


class CommandBuilder:
    """Fluent declaration of a text Command."""

    def __init__(self, name: str, handler: Handler):
        self._name = name
        self._handler = handler
        self._aliases: List[str] = []
        self._parameters: List[Parameter] = []
        self._checks: List[Check] = []
        self._permissions: List[str] = []
        self._owner_only = False
        self._uses_context = False
        self._module = getattr(handler, "__self__", None)
        self._description = ""

    def alias(self, *names: str) -> "CommandBuilder":
        self._aliases.extend(names)
        return self

    def param(self, type: str = STRING, *, optional: bool = False, name: str = "") -> "CommandBuilder":
        self._parameters.append(Parameter(type=type, optional=optional, name=name))
        return self

    def optional(self, type: str = STRING, *, name: str = "") -> "CommandBuilder":
        return self.param(type, optional=True, name=name)

    def rest(self, name: str = "") -> "CommandBuilder":
        """Collect every remaining token into one space-joined string."""
        self._parameters.append(Parameter(type=STRING, rest=True, name=name))
        return self

    def check(self, predicate: Check) -> "CommandBuilder":
        self._checks.append(predicate)
        return self

    def permissions(self, *names: str) -> "CommandBuilder":
        self._permissions.extend(names)
        return self

    def owner_only(self, value: bool = True) -> "CommandBuilder":
        self._owner_only = value
        return self

    def uses_context(self, value: bool = True) -> "CommandBuilder":
        self._uses_context = value
        return self

    def describe(self, text: str) -> "CommandBuilder":
        self._description = text
        return self

    def bind(self, module: Any) -> "CommandBuilder":
        """Set the owning module explicitly (for free-function handlers)."""
        self._module = module
        return self

    def build(self) -> Command:
        return Command(
            name=self._name,
            handler=self._handler,
            aliases=frozenset(self._aliases),
            parameters=tuple(self._parameters),
            checks=list(self._checks),
            permissions=frozenset(self._permissions),
            owner_only=self._owner_only,
            uses_context=self._uses_context,
            module=self._module,
            description=self._description,
        )


class SlashCommandBuilder:
    """Fluent declaration of a SlashCommand."""

    def __init__(self, name: str, handler: Handler):
        self._name = name
        self._handler = handler
        self._permissions: List[str] = []
        self._owner_only = False
        self._module = getattr(handler, "__self__", None)
        self._description = ""

    def permissions(self, *names: str) -> "SlashCommandBuilder":
        self._permissions.extend(names)
        return self

    def owner_only(self, value: bool = True) -> "SlashCommandBuilder":
        self._owner_only = value
        return self

    def describe(self, text: str) -> "SlashCommandBuilder":
        self._description = text
        return self

    def bind(self, module: Any) -> "SlashCommandBuilder":
        self._module = module
        return self

    def build(self) -> SlashCommand:
        return SlashCommand(
            name=self._name,
            handler=self._handler,
            permissions=frozenset(self._permissions),
            owner_only=self._owner_only,
            module=self._module,
            description=self._description,
        )


def command(name: str, handler: Handler) -> CommandBuilder:
    """Start declaring a text command."""
    return CommandBuilder(name, handler)


def slash_command(name: str, handler: Handler) -> SlashCommandBuilder:
    """Start declaring a slash command."""
    return SlashCommandBuilder(name, handler)


def converter(type: str, convert: ConvertFn) -> ArgumentConverter:
    """Declare an argument converter; bound methods carry their module."""
    return ArgumentConverter(type=type, convert=convert, module=getattr(convert, "__self__", None))


class ModuleContext:
    """Interface exposed to modules for interacting with the client.

    Modules receive this in their constructor. They should never
    import client.py directly.
    """

    def __init__(
        self,
        module_name: str,
        settings: dict,
        client: Any = None,
    ):
        self.module_name = module_name
        # Only expose the module's own config section, not full settings
        self._module_settings = settings.get("modules", {}).get(module_name, {}) or {}
        self.client = client
        self.logger = structlog.get_logger("cmdwire.modules").bind(module=module_name)

    def get_config(self, key: str, default: Any = None) -> Any:
        """Read a value from modules.<module_name>.<key> in settings.yaml."""
        return self._module_settings.get(key, default)

    def get_env(self, key: str) -> Optional[str]:
        """Read an environment variable."""
        return os.environ.get(key)


class CommandModule:
    """Base class for all command modules.

    Subclass this and override the methods you need. For directory
    discovery, place the module in <modules_dir>/<name>/module.py.
    """

    name: str = ""
    description: str = ""
    version: str = "1.0.0"

    def __init__(self, ctx: ModuleContext):
        self.ctx = ctx

    def commands(self) -> List[Command]:
        """Return the text commands this module provides."""
        return []

    def slash_commands(self) -> List[SlashCommand]:
        """Return the slash commands this module provides."""
        return []

    def converters(self) -> List[ArgumentConverter]:
        """Return the argument converters this module provides."""
        return []

    async def on_load(self) -> None:
        """Called when the client starts. Initialize resources."""
        pass

    async def on_unload(self) -> None:
        """Called during shutdown. Clean up resources."""
        pass

