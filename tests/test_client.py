"""Tests for CommandClient wiring and lifecycle."""

from unittest.mock import MagicMock

import pytest
import yaml

from cmdwire.client import CommandClient
from cmdwire.config import Config
from cmdwire.dispatch import DispatchResult
from cmdwire.exceptions import ConfigurationError, ErrorKind
from cmdwire.models import MEMBER, NUMBER, USER, InteractionEvent, MessageEvent
from cmdwire.module_base import CommandModule, command, slash_command


class Arith(CommandModule):
    name = "arith"

    def __init__(self, ctx):
        super().__init__(ctx)
        self.results = []
        self.events = []

    def commands(self):
        return [command("add", self.add).param(NUMBER).param(NUMBER).alias("plus").build()]

    def slash_commands(self):
        return [slash_command("ping", self.ping).build()]

    async def add(self, msg, a, b):
        self.results.append(a + b)

    async def ping(self, interaction, options):
        self.results.append(("ping", options))

    async def on_load(self):
        self.events.append("load")

    async def on_unload(self):
        self.events.append("unload")


def _message(content, id="m1"):
    return MessageEvent(id=id, author_id="100", content=content, guild_id="g1", channel_id="c1")


def test_builtin_converters_registered_by_default():
    """number, user and member converters are available out of the box."""
    client = CommandClient()
    assert {c.type for c in client.registry.converters} == {NUMBER, USER, MEMBER}


def test_builtin_converters_can_be_disabled():
    """builtin_converters=False registers no converters."""
    client = CommandClient(builtin_converters=False)
    assert client.registry.converters == []


@pytest.mark.asyncio
async def test_start_feed_stop_lifecycle():
    """Events fed before start are dropped; hooks run around the fed events."""
    client = CommandClient(owners=["1"])
    module = client.load_module(Arith)

    assert client.feed(_message("!add 1 2")) is None

    await client.start()
    assert module.events == ["load"]

    client.feed(_message("!add 1 2", id="a"))
    client.feed(_message("!plus 3 4", id="b"))
    await client.wait_idle()
    assert sorted(module.results) == [3, 7]

    await client.stop()
    assert module.events == ["load", "unload"]
    assert client.running is False


@pytest.mark.asyncio
async def test_dispatch_routes_by_event_type():
    """Messages go to the text dispatcher, interactions to the slash one."""
    client = CommandClient()
    module = client.load_module(Arith)
    await client.start()

    text = await client.dispatch(_message("!add 2 2"))
    slash = await client.dispatch(
        InteractionEvent(user_id="100", command_name="ping", channel_id="c1", options={"x": 1})
    )
    assert text is DispatchResult.SUCCESS
    assert slash is DispatchResult.SUCCESS
    assert module.results == [4, ("ping", {"x": 1})]


@pytest.mark.asyncio
async def test_on_error_receives_reports():
    """on_error subscribers see dispatch failures."""
    client = CommandClient()
    client.load_module(Arith)
    reports = []
    client.on_error(reports.append)
    await client.start()

    result = await client.dispatch(_message("!add 1"))
    assert result is DispatchResult.FAILED
    assert reports[0].kind is ErrorKind.MISSING_ARGUMENT


@pytest.mark.asyncio
async def test_user_converter_uses_platform_client():
    """The user converter resolves mentions through the platform client."""
    platform = MagicMock()
    platform.get_user.return_value = {"id": "42"}
    client = CommandClient(platform=platform)
    seen = []

    class Who(CommandModule):
        name = "who"

        def commands(self):
            return [command("who", self.who).param(USER).build()]

        async def who(self, msg, user):
            seen.append(user)

    client.load_module(Who)
    await client.start()
    await client.dispatch(_message("!who <@!42>"))
    platform.get_user.assert_called_once_with("42")
    assert seen == [{"id": "42"}]


def test_construction_from_config(tmp_path, monkeypatch, restore_logging):
    """Config values are used unless a keyword argument overrides them."""
    monkeypatch.delenv("CMDWIRE_PREFIX", raising=False)
    monkeypatch.delenv("CMDWIRE_CLIENT_ID", raising=False)
    (tmp_path / "settings.yaml").write_text(yaml.dump({
        "prefix": "?",
        "owners": ["7"],
        "client_id": "999",
        "commands": {"allow_bots": True},
        "slash_guild_ids": ["g1"],
        "log_dir": str(tmp_path / "logs"),
    }))
    client = CommandClient(Config(config_dir=tmp_path), allow_bots=False)
    assert client.text.prefix == "?"
    assert client.text.allow_bots is False
    assert client.gate.owner_ids == {"7"}
    assert client.gate.client_id == "999"
    assert client.interactions.guild_ids == {"g1"}
    assert (tmp_path / "logs" / "dispatch.log").exists()


@pytest.mark.asyncio
async def test_load_modules_from_directory(tmp_path):
    """Modules discovered on disk become routable commands."""
    module_dir = tmp_path / "echo"
    module_dir.mkdir()
    (module_dir / "module.py").write_text(
        "from cmdwire.module_base import CommandModule, command\n"
        "\n"
        "\n"
        "class Echo(CommandModule):\n"
        "    def commands(self):\n"
        "        return [command('echo', self.echo).rest().build()]\n"
        "\n"
        "    async def echo(self, msg, text):\n"
        "        return text\n"
    )
    client = CommandClient()
    client.load_modules_from(tmp_path)
    assert client.registry.lookup("echo") is not None


def test_load_modules_from_without_config_is_noop():
    """Without a config or directory nothing is loaded."""
    client = CommandClient()
    client.load_modules_from()
    assert client.registry.commands == []


def test_invalid_config_rejected(tmp_path):
    """A config that fails validation stops construction."""
    (tmp_path / "settings.yaml").write_text(yaml.dump({"owners": "7"}))
    with pytest.raises(ConfigurationError):
        CommandClient(Config(config_dir=tmp_path))


def test_logging_setup_can_be_skipped(tmp_path, monkeypatch):
    """configure_logging=False leaves the host's logging untouched."""
    monkeypatch.delenv("CMDWIRE_PREFIX", raising=False)
    (tmp_path / "settings.yaml").write_text(yaml.dump({
        "owners": ["7"],
        "log_dir": str(tmp_path / "logs"),
    }))
    CommandClient(Config(config_dir=tmp_path), configure_logging=False)
    assert not (tmp_path / "logs").exists()
