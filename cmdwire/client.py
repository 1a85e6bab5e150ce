"""Command client: wires the registry, gate, dispatchers and error channel.

The platform gateway feeds events into CommandClient.feed(); each one
is dispatched in its own task. Failures surface on
``client.errors`` rather than as exceptions.

Key classes:
    CommandClient: Owns every cmdwire subsystem for one bot.
"""

from pathlib import Path
from typing import Any, Callable, Iterable, Optional, Type, Union

import structlog

from .config import Config
from .converters import BuiltinConverters
from .dispatch import DispatchResult, InteractionDispatcher, Prefix, TextDispatcher
from .error_channel import ErrorChannel, ErrorSubscriber
from .gate import CapabilityGate, PermissionQuery
from .logging_config import setup_logging
from .models import InteractionEvent, MessageEvent
from .module_base import CommandModule
from .module_loader import ModuleLoader
from .registry import CommandRegistry
from .task_manager import TaskManager

logger = structlog.get_logger("cmdwire.dispatch")


class CommandClient:
    """Routes platform events to registered commands.

    Subsystems are created in __init__; modules are registered with
    load_module()/load_modules_from() before start(), which runs their
    on_load hooks. The registry must not change once events flow.

    Args:
        config: Settings source. Explicit keyword arguments win over it.
        prefix: Fixed prefix or per-event prefix function.
        owners: Owner actor ids.
        client_id: The bot's own actor id.
        has_permissions: Platform capability query.
        platform: Opaque platform client handed to modules.
        builtin_converters: Register number/user/member converters.
        configure_logging: With a config, install cmdwire's log handlers
            (console, combined and per-subsystem files under log_dir).

    Raises:
        ConfigurationError: If ``config`` fails validation.
    """

    def __init__(
        self,
        config: Optional[Config] = None,
        *,
        prefix: Optional[Prefix] = None,
        owners: Optional[Iterable[str]] = None,
        client_id: Optional[str] = None,
        has_permissions: Optional[PermissionQuery] = None,
        platform: Any = None,
        allow_self: Optional[bool] = None,
        allow_bots: Optional[bool] = None,
        slash_guild_ids: Optional[Iterable[str]] = None,
        builtin_converters: bool = True,
        configure_logging: bool = True,
    ):
        self.config = config
        if config is not None:
            config.validate()
            if configure_logging:
                setup_logging(config)
        settings = config.settings if config is not None else {}

        if prefix is None:
            prefix = config.prefix if config is not None else "!"
        if owners is None:
            owners = config.owners if config is not None else []
        if client_id is None and config is not None:
            client_id = config.client_id
        if allow_self is None:
            allow_self = config.allow_self if config is not None else False
        if allow_bots is None:
            allow_bots = config.allow_bots if config is not None else False
        if slash_guild_ids is None and config is not None:
            slash_guild_ids = config.slash_guild_ids

        self.platform = platform
        self.registry = CommandRegistry()
        self.errors = ErrorChannel()
        self.gate = CapabilityGate(owners, client_id=client_id, has_permissions=has_permissions)
        self.text = TextDispatcher(
            self.registry,
            self.gate,
            self.errors,
            prefix,
            allow_self=allow_self,
            allow_bots=allow_bots,
        )
        self.interactions = InteractionDispatcher(
            self.registry, self.gate, self.errors, guild_ids=slash_guild_ids,
        )
        self.tasks = TaskManager()
        self.modules = ModuleLoader(self.registry, settings, client=platform)
        self.running = False

        if builtin_converters:
            self.modules.add(BuiltinConverters)

    def load_module(self, module: Union[CommandModule, Type[CommandModule]]) -> CommandModule:
        """Register a module class or instance."""
        return self.modules.add(module)

    def load_modules_from(self, modules_dir: Optional[Path] = None) -> None:
        """Discover and register modules under modules_dir (or the configured one)."""
        if modules_dir is None:
            if self.config is None:
                return
            modules_dir = self.config.modules_dir
        self.modules.discover_and_load(modules_dir)

    def on_error(self, callback: ErrorSubscriber) -> Callable[[], None]:
        """Subscribe to the error channel."""
        return self.errors.subscribe(callback)

    async def start(self) -> None:
        """Run module on_load hooks and begin accepting events."""
        await self.modules.load_all()
        self.running = True
        logger.info(
            "client_started",
            commands=len(self.registry.commands),
            slash_commands=len(self.registry.slash_commands),
            converters=len(self.registry.converters),
        )

    async def stop(self, *, drain: bool = True) -> None:
        """Stop accepting events, finish or cancel in-flight ones, unload modules."""
        if not self.running:
            return
        self.running = False
        if drain:
            await self.tasks.wait_idle()
        else:
            await self.tasks.cancel_all()
        await self.modules.unload_all()
        logger.info("client_stopped")

    async def dispatch(self, event: Union[MessageEvent, InteractionEvent]) -> DispatchResult:
        """Dispatch one event and wait for the outcome."""
        if isinstance(event, InteractionEvent):
            return await self.interactions.dispatch(event)
        return await self.text.dispatch(event)

    def feed(self, event: Union[MessageEvent, InteractionEvent]):
        """Dispatch one event in its own task without waiting for it.

        Returns the task, or None if the client is not running.
        """
        if not self.running:
            logger.warning("event_dropped_not_running", event_id=event.id)
            return None
        kind = "interaction" if isinstance(event, InteractionEvent) else "message"
        return self.tasks.spawn(self.dispatch(event), name=f"{kind}:{event.id}")

    async def wait_idle(self) -> None:
        """Wait for every fed event to finish dispatching."""
        await self.tasks.wait_idle()
