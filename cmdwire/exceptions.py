"""Exception hierarchy for cmdwire.

Every failure the dispatch pipeline can report is a ``CommandError``
subclass tagged with an ``ErrorKind``. Dispatchers never raise these
into the platform; they hand them to the ErrorChannel instead.

Registration and configuration problems happen at startup and are
raised normally.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, FrozenSet, Optional

if TYPE_CHECKING:
    from .models import Command, SlashCommand


class ErrorKind(str, Enum):
    """Classification of dispatch failures delivered on the error channel."""
    OWNER_ONLY = "owner_only"
    MISSING_CLIENT_PERMISSIONS = "missing_client_permissions"
    MISSING_USER_PERMISSIONS = "missing_user_permissions"
    SLASH_OWNER_ONLY = "slash_owner_only"
    MISSING_SLASH_CLIENT_PERMISSIONS = "missing_slash_client_permissions"
    MISSING_SLASH_USER_PERMISSIONS = "missing_slash_user_permissions"
    CHECK_FAILED = "check_failed"
    MISSING_ARGUMENT = "missing_argument"
    NO_CONVERTER = "no_converter"
    CONVERSION_FAILED = "conversion_failed"
    CONVERSION_ERROR = "conversion_error"
    EXECUTION_ERROR = "execution_error"


class CmdwireError(Exception):
    """Base exception for all cmdwire errors.

    Attributes:
        message: Human-readable error description.
        module: Originating subsystem name (e.g. "registry").
        context: Arbitrary key-value pairs for structured logging.
    """

    def __init__(
        self,
        message: str = "",
        *,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.message = message
        self.module = module
        self.context = context
        super().__init__(message)

    def __str__(self) -> str:
        parts = [self.message or self.__class__.__name__]
        if self.module:
            parts.append(f"[module={self.module}]")
        if self.context:
            ctx = ", ".join(f"{k}={v}" for k, v in self.context.items())
            parts.append(f"({ctx})")
        return " ".join(parts)

    def __repr__(self) -> str:
        cls = self.__class__.__name__
        return f"{cls}({self.message!r}, module={self.module!r})"


# ---------------------------------------------------------------------------
# Startup exceptions
# ---------------------------------------------------------------------------

class RegistrationError(CmdwireError):
    """A command, alias, or parameter list could not be registered."""

    def __init__(self, message: str = "", *, module: Optional[str] = None, **context: Any) -> None:
        super().__init__(message, module=module or "registry", **context)


class ConfigurationError(CmdwireError):
    """Invalid or missing configuration.

    Attributes:
        setting_name: The offending settings key, if known.
    """

    def __init__(
        self,
        message: str = "",
        *,
        setting_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.setting_name = setting_name
        super().__init__(message, module=module or "config", **context)


class ModuleLoadError(CmdwireError):
    """A command module could not be imported or instantiated."""

    def __init__(
        self,
        message: str = "",
        *,
        module_name: Optional[str] = None,
        module: Optional[str] = None,
        **context: Any,
    ) -> None:
        self.module_name = module_name
        super().__init__(message, module=module or "modules", **context)


# ---------------------------------------------------------------------------
# Dispatch exceptions (delivered on the error channel)
# ---------------------------------------------------------------------------

class CommandError(CmdwireError):
    """A classified failure while dispatching one event.

    Attributes:
        kind: The ErrorKind this failure is reported as.
        command: The resolved Command or SlashCommand.
    """

    kind: ErrorKind

    def __init__(
        self,
        message: str = "",
        *,
        command: "Optional[Command | SlashCommand]" = None,
        **context: Any,
    ) -> None:
        self.command = command
        if command is not None:
            context.setdefault("command", command.name)
        super().__init__(message, module="dispatch", **context)


class OwnerOnly(CommandError):
    kind = ErrorKind.OWNER_ONLY

    def __init__(self, command: "Command", actor_id: str) -> None:
        self.actor_id = actor_id
        super().__init__("This command can only be used by the bot owners.", command=command)


class _MissingPermissions(CommandError):
    """Shared shape for capability gate failures.

    Attributes:
        required: The permission set the actor had to hold.
    """

    _who = ""

    def __init__(self, command: "Command | SlashCommand", required: FrozenSet[str]) -> None:
        self.required = frozenset(required)
        super().__init__(
            f"{self._who} is missing permissions: {', '.join(sorted(self.required))}",
            command=command,
        )


class MissingClientPermissions(_MissingPermissions):
    kind = ErrorKind.MISSING_CLIENT_PERMISSIONS
    _who = "Bot"


class MissingUserPermissions(_MissingPermissions):
    kind = ErrorKind.MISSING_USER_PERMISSIONS
    _who = "User"


class SlashOwnerOnly(OwnerOnly):
    kind = ErrorKind.SLASH_OWNER_ONLY


class MissingSlashClientPermissions(MissingClientPermissions):
    kind = ErrorKind.MISSING_SLASH_CLIENT_PERMISSIONS


class MissingSlashUserPermissions(MissingUserPermissions):
    kind = ErrorKind.MISSING_SLASH_USER_PERMISSIONS


class CheckFailed(CommandError):
    kind = ErrorKind.CHECK_FAILED

    def __init__(self, command: "Command") -> None:
        super().__init__("A command check did not pass.", command=command)


class MissingArgument(CommandError):
    """A required parameter had no token.

    Attributes:
        index: Position of the parameter in the command's parameter list.
    """

    kind = ErrorKind.MISSING_ARGUMENT

    def __init__(self, command: "Command", index: int) -> None:
        self.index = index
        super().__init__("An argument is required but not provided.", command=command, index=index)


class NoConverter(CommandError):
    kind = ErrorKind.NO_CONVERTER

    def __init__(self, command: "Command", type_tag: str) -> None:
        self.type_tag = type_tag
        super().__init__(f"No converter found for type {type_tag}.", command=command)


class ConversionFailed(CommandError):
    kind = ErrorKind.CONVERSION_FAILED

    def __init__(self, command: "Command", index: int) -> None:
        self.index = index
        super().__init__("Argument converter returned no result.", command=command, index=index)


class ConversionError(CommandError):
    """An argument converter raised.

    Attributes:
        original: The exception the converter raised.
    """

    kind = ErrorKind.CONVERSION_ERROR

    def __init__(self, command: "Command", index: int, original: BaseException) -> None:
        self.index = index
        self.original = original
        super().__init__(
            str(original) or type(original).__name__,
            command=command,
            index=index,
            error_type=type(original).__name__,
        )


class ExecutionError(CommandError):
    """The command handler itself raised.

    Attributes:
        original: The exception the handler raised.
    """

    kind = ErrorKind.EXECUTION_ERROR

    def __init__(self, command: "Command | SlashCommand", original: BaseException) -> None:
        self.original = original
        super().__init__(
            str(original) or type(original).__name__,
            command=command,
            error_type=type(original).__name__,
        )
