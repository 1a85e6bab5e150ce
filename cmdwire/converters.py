"""Built-in argument converters.

Registered by default by CommandClient. Provides the "number", "user"
and "member" type tags. The user and member converters resolve mention
tokens (``<@123>`` or ``<@!123>``) through the platform client object
handed to the module context.
"""

import math
import re
from typing import List, Optional, Union

from .models import MEMBER, NUMBER, USER, ArgumentConverter, MessageEvent
from .module_base import CommandModule, converter

_MENTION_RE = re.compile(r"^<@!?(\d+)>$")


def user_id_from_mention(mention: str) -> Optional[str]:
    """Extract the id from a user mention token, or None if it isn't one."""
    if not mention:
        return None
    match = _MENTION_RE.match(mention)
    return match.group(1) if match else None


_PREFIXED_INT_RE = re.compile(r"^0(?:[xX][0-9a-fA-F]+|[oO][0-7]+|[bB][01]+)$")


def parse_number(value: str) -> Optional[Union[int, float]]:
    """Parse a numeric token the way a JavaScript ``Number()`` call would.

    Decimal ints, floats, exponents, ``Infinity`` and unsigned
    ``0x``/``0o``/``0b`` literals are accepted. Python-only spellings
    (digit separators ``1_000``, ``inf``, non-ASCII digits) and NaN
    return None.
    """
    value = value.strip()
    if "_" in value or not value.isascii():
        return None
    if _PREFIXED_INT_RE.match(value):
        return int(value, 0)
    try:
        return int(value)
    except ValueError:
        pass
    try:
        number = float(value)
    except ValueError:
        return None
    if math.isnan(number):
        return None
    if value.lstrip("+-").lower() in ("inf", "infinity") and value.lstrip("+-") != "Infinity":
        return None
    return number


class BuiltinConverters(CommandModule):
    name = "builtin_converters"
    description = "Converters for number, user and member parameters"

    def converters(self) -> List[ArgumentConverter]:
        return [
            converter(NUMBER, self.number),
            converter(USER, self.user),
            converter(MEMBER, self.member),
        ]

    def number(self, value: str, event: MessageEvent):
        return parse_number(value)

    def user(self, value: str, event: MessageEvent):
        user_id = user_id_from_mention(value)
        if user_id is None or self.ctx.client is None:
            return None
        return self.ctx.client.get_user(user_id)

    def member(self, value: str, event: MessageEvent):
        user_id = user_id_from_mention(value)
        if user_id is None or event.guild_id is None or self.ctx.client is None:
            return None
        return self.ctx.client.get_member(event.guild_id, user_id)
