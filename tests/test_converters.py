"""Tests for the built-in converters module."""

from unittest.mock import MagicMock

from cmdwire.converters import BuiltinConverters, parse_number, user_id_from_mention
from cmdwire.models import MEMBER, NUMBER, USER, MessageEvent
from cmdwire.module_base import ModuleContext


def _module(client=None):
    return BuiltinConverters(ModuleContext("builtin_converters", settings={}, client=client))


def _event(guild_id="g1"):
    return MessageEvent(author_id="1", channel_id="c1", guild_id=guild_id, content="!x")


def test_parse_number():
    """Ints stay ints, floats and exponents parse, garbage is None."""
    assert parse_number("42") == 42
    assert isinstance(parse_number("42"), int)
    assert parse_number("-3.5") == -3.5
    assert parse_number("1e3") == 1000.0
    assert parse_number("abc") is None
    assert parse_number("nan") is None


def test_parse_number_follows_javascript_number_rules():
    """Prefixed literals and Infinity parse; Python-only spellings don't."""
    assert parse_number("0x10") == 16
    assert parse_number("0b101") == 5
    assert parse_number("0o17") == 15
    assert parse_number("010") == 10
    assert parse_number("-Infinity") == float("-inf")
    assert parse_number("1_000") is None
    assert parse_number("inf") is None
    assert parse_number("-0x10") is None
    assert parse_number("\u0663") is None


def test_user_id_from_mention():
    """Both mention forms yield the id; anything else is None."""
    assert user_id_from_mention("<@123>") == "123"
    assert user_id_from_mention("<@!123>") == "123"
    assert user_id_from_mention("123") is None
    assert user_id_from_mention("<#123>") is None
    assert user_id_from_mention("") is None


def test_declares_three_converters():
    """The module declares number, user and member converters."""
    module = _module()
    types = {c.type: c for c in module.converters()}
    assert set(types) == {NUMBER, USER, MEMBER}
    assert all(c.module is module for c in types.values())


def test_user_converter_uses_platform_client():
    """Mentions are looked up with client.get_user."""
    client = MagicMock()
    client.get_user.return_value = "user-123"
    module = _module(client)
    assert module.user("<@!123>", _event()) == "user-123"
    client.get_user.assert_called_once_with("123")


def test_user_converter_rejects_non_mentions():
    """Plain ids are not treated as mentions."""
    client = MagicMock()
    module = _module(client)
    assert module.user("bob", _event()) is None
    client.get_user.assert_not_called()


def test_member_converter_requires_guild():
    """Member lookup needs a guild and passes its id along."""
    client = MagicMock()
    client.get_member.return_value = "member-5"
    module = _module(client)
    assert module.member("<@5>", _event()) == "member-5"
    client.get_member.assert_called_once_with("g1", "5")
    assert module.member("<@5>", _event(guild_id=None)) is None


def test_converters_without_client_return_none():
    """With no platform client the user and member converters fail."""
    module = _module()
    assert module.user("<@1>", _event()) is None
    assert module.member("<@1>", _event()) is None
