"""Tests for client message parsing."""

import pytest
from pydantic import ValidationError

from reware.schemas.websocket import (
    ChangeEditMessage,
    CreateListingMessage,
    HelloMessage,
    parse_client_message,
)


def test_hello_defaults() -> None:
    message = parse_client_message('{"type": "hello"}')
    assert message == HelloMessage(type="hello", path="/", refresh_token=None)


def test_discriminates_on_type() -> None:
    message = parse_client_message('{"type": "create_listing", "title": "Chair", "price": "20"}')
    assert isinstance(message, CreateListingMessage)
    assert message.condition == "good"
    edit = parse_client_message('{"type": "change_edit", "role": "admin"}')
    assert isinstance(edit, ChangeEditMessage)
    assert edit.display_name is None


@pytest.mark.parametrize(
    "raw",
    [
        "{not json",
        '{"type": "teleport"}',
        '{"path": "/"}',
        '{"type": "delete_listing", "listing_id": ""}',
        '{"type": "navigate"}',
    ],
)
def test_malformed_messages_rejected(raw: str) -> None:
    with pytest.raises(ValidationError):
        parse_client_message(raw)
