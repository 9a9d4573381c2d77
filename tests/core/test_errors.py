"""Tests for the error hierarchy."""

import pytest

from agentkv.core.errors import (
    AgentKVError,
    ClosedIteratorError,
    ConfigError,
    ConnectionError_,
    NotFoundError,
    StorageError,
    StoreClosedError,
    ValidationError,
)


@pytest.mark.parametrize(
    "error_cls",
    [ConfigError, ConnectionError_, ValidationError, NotFoundError, StorageError, ClosedIteratorError],
)
def test_every_error_is_an_agentkv_error(error_cls):
    assert issubclass(error_cls, AgentKVError)


def test_connection_error_does_not_shadow_builtin():
    assert not issubclass(ConnectionError_, ConnectionError)


def test_not_found_defaults():
    err = NotFoundError(key="did:example:1")
    assert str(err) == "data not found"
    assert err.key == "did:example:1"


def test_closed_iterator_message():
    assert "Iterator is closed" in str(ClosedIteratorError())


def test_store_closed_is_storage_error():
    err = StoreClosedError("dbprefix_dids")
    assert isinstance(err, StorageError)
    assert err.store_name == "dbprefix_dids"
    assert "dbprefix_dids" in str(err)


def test_details_default_to_empty_dict():
    err = ValidationError("key is mandatory")
    assert err.message == "key is mandatory"
    assert err.details == {}
