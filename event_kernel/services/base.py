"""
BaseService -- abstract base for kernel write services.

Responsibility:
    Common constructor and session contract for every kernel service.
    Services persist through ``session.flush()`` and never commit.

Invariants enforced:
    - Transaction boundaries belong to the caller (``session_scope`` or a
      test fixture).  A service never calls ``commit()`` or ``rollback()``
      on the session; savepoints it opens itself are the only exception.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseService(ABC):
    """
    Abstract base class for kernel services.

    Contract:
        Accepts a SQLAlchemy ``Session`` from the caller and flushes
        changes within the caller's transaction.

    Non-goals:
        - Does NOT manage transaction lifecycle.
        - Does NOT provide read-only queries; those belong in selectors.
    """

    def __init__(self, session: Session):
        self.session = session
