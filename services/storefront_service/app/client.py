"""Identity-scoped persistence client.

``StoreClient`` is the only way the orchestrator touches the database. Every
call is filtered or checked by the table's row-level rules from
:mod:`.policies`, and every database failure is re-raised as
:class:`~.errors.PersistenceError` so callers see one failure type.
"""

from __future__ import annotations

import logging
import uuid
from collections.abc import Iterable, Mapping
from typing import Any

from sqlalchemy import delete, false, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from .errors import AuthorizationError, PersistenceError
from .policies import TablePolicy, insert_check_statement, policy_for

logger = logging.getLogger(__name__)


class StoreClient:
    """Generic select/insert/update/delete over storefront tables for one caller."""

    def __init__(
        self,
        session: AsyncSession,
        identity: uuid.UUID | None,
        *,
        privileged: bool = False,
    ) -> None:
        self.session = session
        self.identity = identity
        # Privileged clients bypass row rules; used by the signup hook and seeding only.
        self.privileged = privileged

    def _conditions(self, policy: TablePolicy, rule, filters: Mapping[str, Any] | None) -> list:
        conditions = [getattr(policy.model, column) == value for column, value in (filters or {}).items()]
        if not self.privileged:
            conditions.append(rule(self.identity) if rule is not None else false())
        return conditions

    async def select(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        include: Iterable[str] = (),
        limit: int | None = None,
    ) -> list[Any]:
        policy = policy_for(table)
        model = policy.model
        query = select(model).where(*self._conditions(policy, policy.select, filters))
        for relation in include:
            query = query.options(selectinload(getattr(model, relation)))
        if order_by is not None:
            column = getattr(model, order_by)
            query = query.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            query = query.limit(limit)

        try:
            result = await self.session.execute(query)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), table=table, operation="select") from exc
        return list(result.scalars().unique())

    async def select_one(
        self,
        table: str,
        filters: Mapping[str, Any] | None = None,
        *,
        include: Iterable[str] = (),
    ) -> Any | None:
        """Return the single matching row, ``None`` when absent; more than one row is an error."""

        rows = await self.select(table, filters, include=include, limit=2)
        if len(rows) > 1:
            raise PersistenceError("Expected at most one row", table=table, operation="select")
        return rows[0] if rows else None

    async def insert(self, table: str, values: Mapping[str, Any]) -> Any:
        policy = policy_for(table)
        if not self.privileged:
            check = insert_check_statement(policy, self.identity, values)
            if check is None:
                raise AuthorizationError(f"Inserts into {table} are not permitted", table=table, operation="insert")
            try:
                allowed = await self.session.scalar(check)
            except SQLAlchemyError as exc:
                raise PersistenceError(str(exc), table=table, operation="insert") from exc
            if not allowed:
                raise AuthorizationError(
                    f"New row violates row-level rule for {table}", table=table, operation="insert"
                )

        row = policy.model(**values)
        self.session.add(row)
        try:
            await self.session.flush()
            await self.session.refresh(row)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), table=table, operation="insert") from exc
        logger.debug("Inserted %s row %s", table, getattr(row, "id", None))
        return row

    async def update(self, table: str, filters: Mapping[str, Any], patch: Mapping[str, Any]) -> int:
        """Apply ``patch`` to visible rows matching ``filters``; return the number of rows changed."""

        policy = policy_for(table)
        statement = (
            update(policy.model)
            .where(*self._conditions(policy, policy.update, filters))
            .values(**patch)
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), table=table, operation="update") from exc
        return result.rowcount

    async def delete(self, table: str, filters: Mapping[str, Any]) -> int:
        policy = policy_for(table)
        statement = (
            delete(policy.model)
            .where(*self._conditions(policy, policy.delete, filters))
            .execution_options(synchronize_session="fetch")
        )
        try:
            result = await self.session.execute(statement)
        except SQLAlchemyError as exc:
            raise PersistenceError(str(exc), table=table, operation="delete") from exc
        return result.rowcount
