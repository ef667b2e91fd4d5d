import pytest
from supportlist.errors import (
    SupportListError, TransportError, QueryError, PublishError,
    SnapshotParseError, ListNotFoundError, InvalidSecretError,
    InvalidOwnerKeyError, OwnerKeyRequiredError, ItemNotFoundError,
)

def test_support_list_error_base():
    err = SupportListError("CODE", "message", "ctx")
    assert err.code == "CODE"
    assert err.message == "message"
    assert err.context == "ctx"
    assert str(err) == "[CODE] message Context: ctx"

def test_concrete_errors():
    classes = [
        TransportError, QueryError, PublishError, SnapshotParseError,
        ListNotFoundError, InvalidSecretError, InvalidOwnerKeyError,
        OwnerKeyRequiredError, ItemNotFoundError,
    ]
    codes = set()
    for cls in classes:
        err = cls("some context")
        assert isinstance(err, SupportListError)
        assert err.context == "some context"
        assert err.code.startswith("SUPPORTLIST_E")
        assert "some context" in str(err)
        codes.add(err.code)
    assert len(codes) == len(classes)

def test_transport_hierarchy():
    assert issubclass(QueryError, TransportError)
    assert issubclass(PublishError, TransportError)

def test_no_context():
    assert str(ListNotFoundError()) == (
        "[SUPPORTLIST_E101] No list found. The owner may not have created the list yet."
    )
