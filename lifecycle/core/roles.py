"""
Role Resolver.

"Does this subject hold role R?" is a boolean capability backed by an exact
(subject, role) lookup. Callers never see the difference between an absent
row and a failed lookup: both answer False.
"""
import logging
import uuid
from abc import ABC, abstractmethod

from sqlalchemy import select, exists, delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from lifecycle.models.role import AppRole, UserRole

logger = logging.getLogger(__name__)


class RoleStore(ABC):
    """Role-assignment store interface."""

    @abstractmethod
    async def has_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        """True if a (subject, role) assignment exists."""
        pass

    @abstractmethod
    async def grant_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        """Insert an assignment; False if it already existed."""
        pass

    @abstractmethod
    async def revoke_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        """Remove an assignment; False if there was none."""
        pass


class SqlRoleStore(RoleStore):
    """Role store over the user_roles table."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    async def has_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        stmt = select(
            exists().where(
                UserRole.user_id == subject_id,
                UserRole.role == AppRole(role).value,
            )
        )
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            return bool(result.scalar())

    async def grant_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        """
        Insert an assignment.

        Returns:
            True if inserted, False if the subject already held the role
        """
        async with self.session_factory() as session:
            session.add(UserRole(user_id=subject_id, role=AppRole(role).value))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                return False
        logger.info(f"Granted role '{AppRole(role).value}' to {subject_id}")
        return True

    async def revoke_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        """
        Remove an assignment.

        Returns:
            True if a row was removed
        """
        async with self.session_factory() as session:
            result = await session.execute(
                delete(UserRole).where(
                    UserRole.user_id == subject_id,
                    UserRole.role == AppRole(role).value,
                )
            )
            await session.commit()
        removed = (result.rowcount or 0) > 0
        if removed:
            logger.info(f"Revoked role '{AppRole(role).value}' from {subject_id}")
        return removed


class RoleResolver:
    """
    Answers role questions for the gateway.

    Lookup failures fail closed for elevated privilege: the subject is
    treated as not holding the role.
    """

    def __init__(self, store: RoleStore):
        self.store = store

    async def has_role(self, subject_id: uuid.UUID, role: AppRole) -> bool:
        try:
            return bool(await self.store.has_role(subject_id, role))
        except Exception as e:
            logger.warning(
                f"Role lookup failed for {subject_id} ({AppRole(role).value}), "
                f"treating as not granted: {e}"
            )
            return False

    async def is_admin(self, subject_id: uuid.UUID) -> bool:
        return await self.has_role(subject_id, AppRole.ADMIN)
