# Overview: Session resolution and unit-of-work helpers shared by every service that writes.

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session

from ..extensions import db


def resolve_session(session: Session | None = None) -> Session:
    """Use the injected session when given, otherwise the app-scoped one."""
    return session if session is not None else db.session


@contextmanager
def unit_of_work(session: Session | None = None) -> Iterator[Session]:
    """
    All writes inside the block commit together or not at all.

    Any exception (including one raised by the commit itself) rolls the
    whole session back before propagating.
    """
    session = resolve_session(session)
    try:
        yield session
        session.commit()
    except BaseException:
        session.rollback()
        raise
