"""Command module discovery, registration, and lifecycle management."""

import importlib.util
import sys
from pathlib import Path
from typing import Any, List, Type, Union

import structlog

from .exceptions import ModuleLoadError
from .module_base import CommandModule, ModuleContext
from .registry import CommandRegistry

logger = structlog.get_logger("cmdwire.modules")


class ModuleLoader:
    """Instantiates command modules and registers what they declare.

    Modules are added explicitly with add(), or discovered from
    ``<modules_dir>/<name>/module.py`` files with discover_and_load().
    A module that fails to import, instantiate or register is logged
    and skipped; the others still load.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        settings: dict,
        client: Any = None,
    ):
        self.registry = registry
        self._settings = settings
        self._client = client
        self.modules: List[CommandModule] = []
        self._loaded: List[CommandModule] = []

    def _make_context(self, module_name: str) -> ModuleContext:
        return ModuleContext(
            module_name=module_name,
            settings=self._settings,
            client=self._client,
        )

    def add(self, module: Union[CommandModule, Type[CommandModule]]) -> CommandModule:
        """Register a module class or instance.

        Classes are instantiated with a ModuleContext named after the
        class's ``name`` attribute (or the class name).

        Raises:
            RegistrationError: If a declared command collides with an
                already registered one.
        """
        if isinstance(module, type):
            module_name = module.name or module.__name__.lower()
            module = module(self._make_context(module_name))
        self.registry.register_module(module)
        self.modules.append(module)
        return module

    def discover_and_load(self, modules_dir: Path) -> None:
        """Scan modules_dir for <name>/module.py files and load them."""
        if not modules_dir.is_dir():
            logger.info("module_loader_no_dir", path=str(modules_dir))
            return

        allowlist = self._settings.get("module_allowlist")
        if allowlist is not None and not isinstance(allowlist, list):
            logger.error("module_allowlist_invalid_type", type=type(allowlist).__name__)
            allowlist = None

        for module_dir in sorted(modules_dir.iterdir()):
            if not module_dir.is_dir():
                continue
            module_file = module_dir / "module.py"
            if not module_file.is_file():
                continue

            module_name = module_dir.name
            if allowlist is not None and module_name not in allowlist:
                logger.warning(
                    "module_blocked_not_in_allowlist",
                    module=module_name,
                    allowlist=allowlist,
                )
                continue

            try:
                self._load_module(module_name, module_file)
            except Exception as e:
                logger.error(
                    "module_load_failed",
                    module=module_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )

        logger.info(
            "module_loader_complete",
            modules_loaded=len(self.modules),
            commands=len(self.registry.commands),
            slash_commands=len(self.registry.slash_commands),
        )

    def _load_module(self, module_name: str, module_file: Path) -> None:
        """Load a single command module from its module.py file."""
        module_config = self._settings.get("modules", {}).get(module_name, {})
        if isinstance(module_config, dict) and module_config.get("enabled") is False:
            logger.info("module_skipped_disabled", module=module_name)
            return

        import_name = f"{module_name}.module"
        spec = importlib.util.spec_from_file_location(import_name, module_file)
        if spec is None or spec.loader is None:
            raise ModuleLoadError("Cannot import module file", module_name=module_name)
        py_module = importlib.util.module_from_spec(spec)
        sys.modules[import_name] = py_module
        spec.loader.exec_module(py_module)

        module_cls = None
        for attr in py_module.__dict__.values():
            if (
                isinstance(attr, type)
                and issubclass(attr, CommandModule)
                and attr is not CommandModule
                and attr.__module__ == import_name
            ):
                module_cls = attr
                break

        if module_cls is None:
            logger.warning("module_no_class_found", module=module_name)
            return

        module = module_cls(self._make_context(module_name))
        self.registry.register_module(module)
        self.modules.append(module)
        logger.info("module_loaded", module=module_name, version=module.version)

    async def load_all(self) -> None:
        """Call on_load() on every module not loaded yet."""
        for module in self.modules:
            if module in self._loaded:
                continue
            label = module.name or type(module).__name__
            try:
                await module.on_load()
                self._loaded.append(module)
                logger.info("module_started", module=label)
            except Exception as e:
                logger.error("module_start_failed", module=label, error=str(e))

    async def unload_all(self) -> None:
        """Call on_unload() on loaded modules (reverse order)."""
        for module in reversed(self._loaded):
            label = module.name or type(module).__name__
            try:
                await module.on_unload()
                logger.info("module_stopped", module=label)
            except Exception as e:
                logger.error("module_stop_failed", module=label, error=str(e))
        self._loaded.clear()
