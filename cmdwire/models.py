"""Data model for commands, converters, and platform events.

Commands and converters are plain dataclasses owned by the registry
for the process lifetime. Platform events are pydantic models: they
are built from raw gateway payloads and consumed read-only by the
dispatchers.
"""

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, FrozenSet, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field

from .exceptions import RegistrationError

# Built-in type tags. Any other string is a custom tag resolved through
# the converter registry.
STRING = "string"
NUMBER = "number"
USER = "user"
MEMBER = "member"

# Predicate run before argument conversion: (event) -> bool
Check = Callable[["MessageEvent"], Union[bool, Awaitable[bool]]]

# Converter function: (raw_token, event) -> value or None
ConvertFn = Callable[[str, "MessageEvent"], Any]

Handler = Callable[..., Any]


@dataclass(frozen=True)
class Parameter:
    """One declared positional parameter of a text command.

    Attributes:
        type: Type tag used to look up an argument converter.
        optional: Parameter may be omitted by the invoker.
        rest: Consumes every remaining token joined by spaces.
        name: Label used in help text and logs.
    """
    type: str = STRING
    optional: bool = False
    rest: bool = False
    name: str = ""


def validate_parameters(name: str, parameters: Tuple[Parameter, ...]) -> None:
    """Reject parameter lists the argument pipeline can't consume.

    Raises:
        RegistrationError: If a rest parameter is not last, there is more
            than one rest parameter, or a required parameter follows an
            optional one.
    """
    seen_optional = False
    for index, param in enumerate(parameters):
        if param.rest and index != len(parameters) - 1:
            raise RegistrationError(
                "Rest parameter must be the last parameter",
                command=name, index=index,
            )
        if param.optional:
            seen_optional = True
        elif seen_optional and not param.rest:
            raise RegistrationError(
                "Required parameter cannot follow an optional parameter",
                command=name, index=index,
            )


@dataclass
class Command:
    """A registered text command.

    Attributes:
        name: Unique command name.
        handler: Callable invoked with (context_or_event, *arguments).
        aliases: Alternate names resolving to this command.
        parameters: Ordered positional parameters.
        checks: Predicates run in order after the capability gate.
        permissions: Capabilities required of both the bot and the invoker.
        owner_only: Restrict to the configured owner ids.
        uses_context: Pass an ExecutionContext instead of the raw event.
        module: Module instance the handler belongs to, if any.
        description: One-line help text.
    """
    name: str
    handler: Handler
    aliases: FrozenSet[str] = frozenset()
    parameters: Tuple[Parameter, ...] = ()
    checks: List[Check] = field(default_factory=list)
    permissions: FrozenSet[str] = frozenset()
    owner_only: bool = False
    uses_context: bool = False
    module: Any = None
    description: str = ""

    def __post_init__(self):
        self.aliases = frozenset(self.aliases)
        self.parameters = tuple(self.parameters)
        self.permissions = frozenset(self.permissions)
        validate_parameters(self.name, self.parameters)


@dataclass
class SlashCommand:
    """A registered interaction command. Options arrive already typed."""
    name: str
    handler: Handler
    permissions: FrozenSet[str] = frozenset()
    owner_only: bool = False
    module: Any = None
    description: str = ""

    def __post_init__(self):
        self.permissions = frozenset(self.permissions)


@dataclass
class ArgumentConverter:
    """Maps a raw token to a typed value for one type tag.

    ``convert`` may be sync or async. A falsy return means the token could
    not be converted.
    """
    type: str
    convert: ConvertFn
    module: Any = None


# ---------------------------------------------------------------------------
# Platform events
# ---------------------------------------------------------------------------

class MessageEvent(BaseModel):
    """A text message delivered by the platform gateway."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    author_id: str
    author_is_bot: bool = False
    content: str = ""
    guild_id: Optional[str] = None
    channel_id: str
    raw: Dict[str, Any] = Field(default_factory=dict)


class InteractionEvent(BaseModel):
    """A structured command interaction, pre-parsed by the platform."""

    model_config = ConfigDict(frozen=True)

    id: str = ""
    user_id: str
    command_name: str
    options: Dict[str, Any] = Field(default_factory=dict)
    guild_id: Optional[str] = None
    channel_id: str
    is_command: bool = True
    raw: Dict[str, Any] = Field(default_factory=dict)
