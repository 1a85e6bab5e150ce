"""Argument pipeline: raw tokens to typed handler arguments.

Parameters are processed left to right, each consuming one token:

- a rest parameter joins the current and all remaining tokens with a
  single space and ends processing;
- a missing token fails a required parameter and ends processing for
  an optional one, leaving later parameters unset;
- "string" parameters take the token as is;
- any other type goes through the converter registered for its tag.

A converter result is accepted only if it is truthy. Legitimate falsy
values such as 0 or "" are therefore reported as ConversionFailed.
"""

from typing import Any, List, Sequence

import structlog

from .exceptions import ConversionError, ConversionFailed, MissingArgument, NoConverter
from .models import STRING, Command, MessageEvent
from .registry import CommandRegistry
from .utils import maybe_await

logger = structlog.get_logger("cmdwire.dispatch")


async def convert_arguments(
    command: Command,
    tokens: Sequence[str],
    event: MessageEvent,
    registry: CommandRegistry,
) -> List[Any]:
    """Convert raw tokens into values aligned with ``command.parameters``.

    Args:
        command: The resolved command.
        tokens: Whitespace-split tokens after the invocation name.
        event: Source event, passed to converters.
        registry: Converter lookup.

    Returns:
        Converted values in parameter order. Trailing optional parameters
        with no token are omitted.

    Raises:
        MissingArgument, NoConverter, ConversionFailed, ConversionError.
    """
    remaining = list(tokens)
    values: List[Any] = []

    for index, param in enumerate(command.parameters):
        token = remaining.pop(0) if remaining else None

        if param.rest:
            values.append(" ".join([token or ""] + remaining))
            break

        # Empty tokens come from repeated spaces and count as missing
        if not token:
            if param.optional:
                break
            raise MissingArgument(command, index)

        if param.type == STRING:
            values.append(token)
            continue

        converter = registry.converter_for(param.type)
        if converter is None:
            raise NoConverter(command, param.type)

        try:
            value = await maybe_await(converter.convert(token, event))
        except Exception as e:
            logger.debug(
                "converter_raised",
                command=command.name,
                index=index,
                type=param.type,
                error_type=type(e).__name__,
            )
            raise ConversionError(command, index, e) from e

        if not value:
            raise ConversionFailed(command, index)
        values.append(value)

    return values
