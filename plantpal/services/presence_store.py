"""
Identity store for user presence.

The realtime gateway only depends on the ``PresenceStore`` protocol. The
SQLAlchemy implementation opens a session per call and runs it in the
Starlette threadpool so the event loop only suspends at store boundaries.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from plantpal.errors import StoreOperationError
from plantpal.models.user import User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PresenceRecord:
    user_id: int
    socket_id: Optional[str] = None

    @property
    def is_online(self) -> bool:
        return self.socket_id is not None


class PresenceStore(Protocol):
    async def get_user_by_id(self, user_id: int) -> Optional[PresenceRecord]:
        ...

    async def update_user_socket_id(self, user_id: int, socket_id: Optional[str]) -> Optional[PresenceRecord]:
        ...

    async def get_user_by_socket(self, socket_id: str) -> Optional[PresenceRecord]:
        ...


def _to_record(user: Optional[User]) -> Optional[PresenceRecord]:
    if user is None:
        return None
    return PresenceRecord(user_id=user.user_id, socket_id=user.socket_id)


class SqlPresenceStore:
    """PresenceStore backed by the ``users`` table."""

    def __init__(self, session_factory: Callable[[], Session]):
        self.session_factory = session_factory

    async def get_user_by_id(self, user_id: int) -> Optional[PresenceRecord]:
        return await run_in_threadpool(self._run, self._get_user_by_id, user_id)

    async def update_user_socket_id(self, user_id: int, socket_id: Optional[str]) -> Optional[PresenceRecord]:
        return await run_in_threadpool(self._run, self._update_user_socket_id, user_id, socket_id)

    async def get_user_by_socket(self, socket_id: str) -> Optional[PresenceRecord]:
        return await run_in_threadpool(self._run, self._get_user_by_socket, socket_id)

    def _run(self, operation, *args):
        db = self.session_factory()
        try:
            return operation(db, *args)
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Presence store {operation.__name__.lstrip('_')} failed: {e}")
            raise StoreOperationError("Presence store operation failed") from e
        finally:
            db.close()

    @staticmethod
    def _get_user_by_id(db: Session, user_id: int) -> Optional[PresenceRecord]:
        user = db.query(User).filter(User.user_id == user_id).first()
        return _to_record(user)

    @staticmethod
    def _update_user_socket_id(db: Session, user_id: int, socket_id: Optional[str]) -> Optional[PresenceRecord]:
        user = db.query(User).filter(User.user_id == user_id).first()
        if not user:
            return None
        user.socket_id = socket_id
        db.commit()
        db.refresh(user)
        return _to_record(user)

    @staticmethod
    def _get_user_by_socket(db: Session, socket_id: str) -> Optional[PresenceRecord]:
        user = db.query(User).filter(User.socket_id == socket_id).first()
        return _to_record(user)
