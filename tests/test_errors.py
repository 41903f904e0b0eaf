from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from viomar_shared.errors import (
    STORE_HOST_UNRESOLVED_MESSAGE,
    STORE_TIMEOUT_MESSAGE,
    STORE_UNAVAILABLE_MESSAGE,
    StoreUnavailableError,
    classify_store_error,
)


class CodedError(Exception):
    def __init__(self, code):
        self.code = code
        super().__init__(f"socket error {code}")


def test_connection_refused():
    classified = classify_store_error(ConnectionRefusedError(111, "Connection refused"))

    assert isinstance(classified, StoreUnavailableError)
    assert classified.message == STORE_UNAVAILABLE_MESSAGE
    assert classified.status == 503


def test_error_codes():
    assert classify_store_error(CodedError("ECONNREFUSED")).message == STORE_UNAVAILABLE_MESSAGE
    assert classify_store_error(CodedError("enotfound")).message == STORE_HOST_UNRESOLVED_MESSAGE
    assert classify_store_error(CodedError("ETIMEDOUT")).message == STORE_TIMEOUT_MESSAGE


def test_wrapped_driver_errors():
    dns = OperationalError("SELECT 1", {}, Exception('could not translate host name "db"'))
    closed = OperationalError("SELECT 1", {}, Exception("server closed the connection"))

    assert classify_store_error(dns).message == STORE_HOST_UNRESOLVED_MESSAGE
    assert classify_store_error(closed).message == STORE_UNAVAILABLE_MESSAGE


def test_pool_timeout():
    exc = PoolTimeoutError("QueuePool limit of size 10 overflow 20 reached")

    assert classify_store_error(exc).message == STORE_TIMEOUT_MESSAGE


def test_logic_errors_are_not_store_errors():
    integrity = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed: vio_roles.name"))

    assert classify_store_error(integrity) is None
    assert classify_store_error(ValueError("bad input")) is None
    assert classify_store_error(KeyError("x")) is None
