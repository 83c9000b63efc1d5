from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.orm import Session
from appcenter.repositories.user import UserRepo
from appcenter.repositories.application import ApplicationRepo
from appcenter.repositories.version import VersionRepo
from appcenter.repositories.staged_file import StagedFileRepo

class UnitOfWork:
    """Unit of Work pattern implementation for managing database transactions.

    Provides centralized access to all repositories and manages transaction boundaries
    (commit/rollback). Uses lazy-loading to instantiate repositories only when needed.
    Supports context manager protocol for automatic transaction handling.
    """
    def __init__(self, session: Session):
        """Initialize the UnitOfWork with a database session.
        Args:
            session: SQLAlchemy session object for database operations.
        """
        self.session = session
        self._user_repo = None
        self._application_repo = None
        self._version_repo = None
        self._staged_file_repo = None


    @property
    def user_repo(self)-> UserRepo:
        if self._user_repo is None:
            self._user_repo = UserRepo(self.session)
        return self._user_repo

    @property
    def application_repo(self) -> ApplicationRepo:
        if self._application_repo is None:
            self._application_repo = ApplicationRepo(self.session)
        return self._application_repo

    @property
    def version_repo(self) -> VersionRepo:
        if self._version_repo is None:
            self._version_repo = VersionRepo(self.session)
        return self._version_repo

    @property
    def staged_file_repo(self) -> StagedFileRepo:
        if self._staged_file_repo is None:
            self._staged_file_repo = StagedFileRepo(self.session)
        return self._staged_file_repo


    def commit(self) -> None:
        """Commit the current transaction to the database."""
        self.session.commit()

    def rollback(self) -> None:
        """Rollback the current transaction, undoing all pending changes."""
        self.session.rollback()

    def __enter__(self):
        """Enter context manager - returns self for use in with statement."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit context manager - automatically commits or rollbacks transaction.

        Args:
            exc_type: Exception type if an exception occurred.
            exc_val: Exception value if an exception occurred.
            exc_tb: Exception traceback if an exception occurred.

        If an exception occurred, the transaction is rolled back.
        Otherwise, the transaction is committed.
        """
        if exc_type:
            self.rollback()
        else:
            self.commit()

    @contextmanager
    def read_only(self) -> Iterator["UnitOfWork"]:
        """Context manager for read-only operations.

        Avoids unnecessary commits while still rolling back on read-time errors.
        """
        try:
            yield self
        except Exception:
            self.rollback()
            raise
