"""Capability gate: owner-only and permission checks.

The platform computes effective permissions; this module only asks it.
``has_permissions(location_id, actor_id, required)`` is called the same
way for the bot and for the invoking user.

Text and interaction dispatch run the same three checks in different
orders. Both orders are kept as separate pipelines (GateOrder).

If the query itself raises, PermissionQueryFailed is raised and the
dispatch stops with a logged warning, the same way a raising check does.
"""

from enum import Enum
from typing import Awaitable, Callable, FrozenSet, Iterable, Optional, Union

import structlog

from .exceptions import (
    MissingClientPermissions,
    MissingSlashClientPermissions,
    MissingSlashUserPermissions,
    MissingUserPermissions,
    OwnerOnly,
    SlashOwnerOnly,
)
from .models import Command, SlashCommand
from .utils import maybe_await

logger = structlog.get_logger("cmdwire.dispatch")

# (location_id, actor_id, required) -> bool
PermissionQuery = Callable[[Optional[str], str, FrozenSet[str]], Union[bool, Awaitable[bool]]]


class PermissionQueryFailed(Exception):
    """The platform permission query raised. Dispatch stops without a report."""

    def __init__(self, command: Union[Command, SlashCommand], original: BaseException):
        self.command = command
        self.original = original
        super().__init__(str(original))


class GateOrder(str, Enum):
    """Which gate pipeline to run."""
    TEXT = "text"                # owner -> client -> user
    INTERACTION = "interaction"  # client -> user -> owner


class CapabilityGate:
    """Evaluates ownership and permission requirements for a command.

    Args:
        owner_ids: Actor ids allowed to run owner-only commands.
        client_id: The bot's own actor id, used for client permission checks.
        has_permissions: Platform capability query. ``None`` grants everything.
    """

    def __init__(
        self,
        owner_ids: Iterable[str],
        client_id: Optional[str] = None,
        has_permissions: Optional[PermissionQuery] = None,
    ):
        self.owner_ids = frozenset(str(o) for o in owner_ids)
        self.client_id = client_id
        self._has_permissions = has_permissions

    async def _query(
        self,
        command: Union[Command, SlashCommand],
        location_id: Optional[str],
        actor_id: Optional[str],
    ) -> bool:
        required = command.permissions
        if not required or self._has_permissions is None:
            return True
        try:
            return bool(await maybe_await(self._has_permissions(location_id, actor_id, required)))
        except Exception as e:
            logger.warning(
                "permission_query_failed",
                command=command.name,
                location_id=location_id,
                error=str(e),
                error_type=type(e).__name__,
            )
            raise PermissionQueryFailed(command, e) from e

    def check_owner(self, command: Union[Command, SlashCommand], actor_id: str, *, slash: bool = False) -> None:
        """Raise OwnerOnly if the command is owner-only and the actor isn't an owner."""
        if command.owner_only and str(actor_id) not in self.owner_ids:
            error_cls = SlashOwnerOnly if slash else OwnerOnly
            raise error_cls(command, actor_id)

    async def check_client_permissions(
        self, command: Union[Command, SlashCommand], location_id: Optional[str], *, slash: bool = False
    ) -> None:
        """Raise MissingClientPermissions if the bot lacks the required set here."""
        if not await self._query(command, location_id, self.client_id):
            error_cls = MissingSlashClientPermissions if slash else MissingClientPermissions
            raise error_cls(command, command.permissions)

    async def check_user_permissions(
        self,
        command: Union[Command, SlashCommand],
        location_id: Optional[str],
        actor_id: str,
        *,
        slash: bool = False,
    ) -> None:
        """Raise MissingUserPermissions if the invoker lacks the required set here."""
        if not await self._query(command, location_id, actor_id):
            error_cls = MissingSlashUserPermissions if slash else MissingUserPermissions
            raise error_cls(command, command.permissions)

    async def run(
        self,
        order: GateOrder,
        command: Union[Command, SlashCommand],
        location_id: Optional[str],
        actor_id: str,
    ) -> None:
        """Run the three gate checks in the given order; the first failure raises."""
        if order is GateOrder.TEXT:
            self.check_owner(command, actor_id)
            await self.check_client_permissions(command, location_id)
            await self.check_user_permissions(command, location_id, actor_id)
        else:
            await self.check_client_permissions(command, location_id, slash=True)
            await self.check_user_permissions(command, location_id, actor_id, slash=True)
            self.check_owner(command, actor_id, slash=True)
        logger.debug("gate_passed", command=command.name, order=order.value)
