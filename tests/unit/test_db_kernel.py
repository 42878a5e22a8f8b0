"""Unit tests for DB error classification."""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError, OperationalError, ProgrammingError

from seoplanner.core.db_kernel import (
    ConflictError,
    PermanentDbError,
    TransientDbError,
    is_transient_connection_error,
    translate_db_error,
)


def test_integrity_error_is_a_conflict() -> None:
    exc = IntegrityError("INSERT INTO content_plan", {}, Exception("UNIQUE constraint failed"))

    assert isinstance(translate_db_error(exc), ConflictError)


def test_operational_error_is_transient() -> None:
    exc = OperationalError("SELECT 1", {}, Exception("server closed the connection unexpectedly"))

    assert is_transient_connection_error(exc) is True
    assert isinstance(translate_db_error(exc), TransientDbError)


def test_locked_sqlite_database_is_transient() -> None:
    assert is_transient_connection_error(RuntimeError("database is locked")) is True


def test_other_errors_are_permanent() -> None:
    exc = ProgrammingError("SELECT nope", {}, Exception("column does not exist"))

    assert is_transient_connection_error(exc) is False
    assert isinstance(translate_db_error(exc), PermanentDbError)
