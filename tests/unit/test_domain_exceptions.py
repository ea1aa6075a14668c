"""Tests for domain exceptions (error_code, message, details)."""

from reware.domain.exceptions import (
    AuthenticationException,
    AuthorizationException,
    DocumentAlreadyExistsException,
    DocumentNotFoundException,
    DocumentStoreException,
    IdentityProviderException,
    ResourceNotFoundException,
    RewareException,
    StoreUnavailableException,
    ValidationException,
)


def test_reware_exception_default_error_code() -> None:
    """Base RewareException uses class name as error_code when not provided."""
    exc = RewareException("Something failed")
    assert exc.message == "Something failed"
    assert exc.error_code == "RewareException"
    assert exc.details == {}


def test_reware_exception_custom_error_code_and_details() -> None:
    exc = RewareException("Oops", error_code="CUSTOM", details={"key": "value"})
    assert exc.to_dict() == {"error": "CUSTOM", "message": "Oops", "details": {"key": "value"}}


def test_validation_exception() -> None:
    """ValidationException sets VALIDATION_ERROR and optional field in details."""
    exc = ValidationException("title is required", field="title")
    assert exc.error_code == "VALIDATION_ERROR"
    assert exc.details == {"field": "title"}


def test_validation_exception_without_field() -> None:
    exc = ValidationException("Invalid")
    assert exc.details == {}


def test_authentication_exception_default_and_custom() -> None:
    assert AuthenticationException().message == "Authentication failed"
    exc = AuthenticationException("Invalid email or password.")
    assert exc.message == "Invalid email or password."
    assert exc.error_code == "AUTHENTICATION_ERROR"


def test_authorization_exception_with_resource_and_action() -> None:
    exc = AuthorizationException(resource="user", action="delete")
    assert exc.message == "Permission denied: delete on user"
    assert exc.error_code == "PERMISSION_DENIED"
    assert exc.details == {"resource": "user", "action": "delete"}


def test_authorization_exception_default() -> None:
    exc = AuthorizationException()
    assert exc.message == "Permission denied"
    assert exc.details == {}


def test_resource_not_found_exception() -> None:
    exc = ResourceNotFoundException("user", "u1")
    assert exc.message == "user not found: u1"
    assert exc.details == {"resource_type": "user", "resource_id": "u1"}


def test_identity_provider_exception_carries_reason() -> None:
    exc = IdentityProviderException("timeout")
    assert exc.error_code == "IDENTITY_PROVIDER_ERROR"
    assert exc.details == {"reason": "timeout"}
    assert "timeout" in exc.message


def test_document_store_exceptions_share_base() -> None:
    missing = DocumentNotFoundException("users/u1/listings/l1")
    exists = DocumentAlreadyExistsException("users/u1")
    down = StoreUnavailableException("write", "503: unavailable")
    for exc in (missing, exists, down):
        assert isinstance(exc, DocumentStoreException)
    assert missing.message == "No document to update: users/u1/listings/l1"
    assert missing.error_code == "DOCUMENT_NOT_FOUND"
    assert exists.error_code == "DOCUMENT_ALREADY_EXISTS"
    assert down.error_code == "STORE_UNAVAILABLE"
    assert down.details == {"operation": "write", "reason": "503: unavailable"}
