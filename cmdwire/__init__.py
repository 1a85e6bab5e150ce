"""Command routing for chat-platform bots.

Resolves text messages and slash command interactions to registered
handlers, converts arguments, enforces owner/permission gates and
reports failures on an error channel.
"""

from .client import CommandClient
from .context import ExecutionContext
from .dispatch import DispatchResult, InteractionDispatcher, TextDispatcher
from .error_channel import ErrorChannel, ErrorReport
from .exceptions import (
    CheckFailed,
    CmdwireError,
    CommandError,
    ConfigurationError,
    ConversionError,
    ConversionFailed,
    ErrorKind,
    ExecutionError,
    MissingArgument,
    MissingClientPermissions,
    MissingSlashClientPermissions,
    MissingSlashUserPermissions,
    MissingUserPermissions,
    ModuleLoadError,
    NoConverter,
    OwnerOnly,
    RegistrationError,
    SlashOwnerOnly,
)
from .gate import CapabilityGate, GateOrder
from .models import (
    MEMBER,
    NUMBER,
    STRING,
    USER,
    ArgumentConverter,
    Command,
    InteractionEvent,
    MessageEvent,
    Parameter,
    SlashCommand,
)
from .module_base import CommandModule, ModuleContext, command, converter, slash_command
from .registry import CommandRegistry

__all__ = [
    "ArgumentConverter",
    "CapabilityGate",
    "CheckFailed",
    "CmdwireError",
    "Command",
    "CommandClient",
    "CommandError",
    "CommandModule",
    "CommandRegistry",
    "ConfigurationError",
    "ConversionError",
    "ConversionFailed",
    "DispatchResult",
    "ErrorChannel",
    "ErrorKind",
    "ErrorReport",
    "ExecutionContext",
    "ExecutionError",
    "GateOrder",
    "InteractionDispatcher",
    "InteractionEvent",
    "MEMBER",
    "MessageEvent",
    "MissingArgument",
    "MissingClientPermissions",
    "MissingSlashClientPermissions",
    "MissingSlashUserPermissions",
    "MissingUserPermissions",
    "ModuleContext",
    "ModuleLoadError",
    "NUMBER",
    "NoConverter",
    "OwnerOnly",
    "Parameter",
    "RegistrationError",
    "STRING",
    "SlashCommand",
    "SlashOwnerOnly",
    "TextDispatcher",
    "USER",
    "command",
    "converter",
    "slash_command",
]
