"""Staged request pipeline.

Every command travels through the same stages before its executor runs::

    Pending.of(payload)                 # NoDb, Anonymous
        .attach_db(session)             # -> WithDb
        .attach_identity(identity)      # -> WithIdentity (skipped for anonymous reads)
        .validate(validator)            # -> Validated[command]

Each stage returns a new, differently parameterized object. The ``self``
annotations on the stage methods let a type checker reject a call made out of
order (``validate`` before ``attach_db``, an executor fed a ``Pending``
object, ...). Python does not enforce annotations, so each stage also checks
its precondition at runtime and raises ``PipelineStateError``.

A ``Validated`` object is frozen evidence that every check passed: executors
take it as their only argument and never re-validate.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeAlias, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from forum_api.services.base import AuthorizationError, PipelineStateError
from forum_api.utils.security import Identity


class NoDb:
    """No database handle attached yet."""

    def __repr__(self) -> str:
        return "NoDb()"


@dataclass(frozen=True)
class WithDb:
    """A checked-out session, owned by one command for its whole lifetime."""

    session: AsyncSession


class Anonymous:
    """No caller identity attached."""

    def __repr__(self) -> str:
        return "Anonymous()"


@dataclass(frozen=True)
class WithIdentity:
    """The authenticated caller."""

    identity: Identity


DbT = TypeVar("DbT", NoDb, WithDb)
UserT = TypeVar("UserT", Anonymous, WithIdentity)
PayloadT = TypeVar("PayloadT")
CommandT = TypeVar("CommandT")


@dataclass(frozen=True)
class ExecutionContext(Generic[DbT, UserT]):
    """Capabilities attached to a command so far."""

    db: DbT
    user: UserT

    @property
    def session(self) -> AsyncSession:
        if not isinstance(self.db, WithDb):
            raise PipelineStateError("No database handle attached")
        return self.db.session

    @property
    def identity(self) -> Identity:
        if not isinstance(self.user, WithIdentity):
            raise PipelineStateError("No caller identity attached")
        return self.user.identity

    @property
    def caller(self) -> Identity | None:
        """The caller if one is attached, None for anonymous commands."""
        if isinstance(self.user, WithIdentity):
            return self.user.identity
        return None


Validator: TypeAlias = Callable[
    [PayloadT, ExecutionContext[WithDb, UserT]], Awaitable[CommandT]
]


@dataclass(frozen=True)
class Pending(Generic[PayloadT, DbT, UserT]):
    """A deserialized request payload that has not been validated."""

    payload: PayloadT
    context: ExecutionContext[DbT, UserT]

    @staticmethod
    def of(payload: PayloadT) -> Pending[PayloadT, NoDb, Anonymous]:
        """Start a pipeline with no capabilities attached."""
        return Pending(payload, ExecutionContext(NoDb(), Anonymous()))

    def attach_db(
        self: Pending[PayloadT, NoDb, UserT],
        session: AsyncSession,
    ) -> Pending[PayloadT, WithDb, UserT]:
        """Bind the command's database session."""
        if not isinstance(self.context.db, NoDb):
            raise PipelineStateError("Database handle already attached")
        return Pending(self.payload, ExecutionContext(WithDb(session), self.context.user))

    def attach_identity(
        self: Pending[PayloadT, DbT, Anonymous],
        identity: Identity | None,
    ) -> Pending[PayloadT, DbT, WithIdentity]:
        """Bind the authenticated caller.

        Raises:
            AuthorizationError: If there is no signed-in caller.
        """
        if not isinstance(self.context.user, Anonymous):
            raise PipelineStateError("Caller identity already attached")
        if identity is None:
            raise AuthorizationError()
        return Pending(self.payload, ExecutionContext(self.context.db, WithIdentity(identity)))

    def attach_optional_identity(
        self: Pending[PayloadT, DbT, Anonymous],
        identity: Identity | None,
    ) -> Pending[PayloadT, DbT, WithIdentity] | Pending[PayloadT, DbT, Anonymous]:
        """Bind the caller when there is one; anonymous commands pass through."""
        if identity is None:
            return self
        return self.attach_identity(identity)

    async def validate(
        self: Pending[PayloadT, WithDb, UserT],
        validator: Validator[PayloadT, UserT, CommandT],
    ) -> Validated[CommandT, UserT]:
        """Run the validator and wrap its command as trusted.

        The validator receives the attached context so that store-dependent
        checks can use the session; it raises a ``ServiceError`` on the first
        failing check.
        """
        if not isinstance(self.context.db, WithDb):
            raise PipelineStateError("Validation requires a database handle")
        command = await validator(self.payload, self.context)
        return Validated(command, self.context)

    def accept(self: Pending[PayloadT, WithDb, UserT]) -> Validated[PayloadT, UserT]:
        """Trust the payload as-is, for reads whose input needs no checks."""
        if not isinstance(self.context.db, WithDb):
            raise PipelineStateError("Execution requires a database handle")
        return Validated(self.payload, self.context)


@dataclass(frozen=True)
class Validated(Generic[CommandT, UserT]):
    """A command that passed validation, ready for its executor."""

    command: CommandT
    context: ExecutionContext[WithDb, UserT]

    @property
    def session(self) -> AsyncSession:
        return self.context.session

    @property
    def identity(self) -> Identity:
        return self.context.identity

    @property
    def caller(self) -> Identity | None:
        return self.context.caller
