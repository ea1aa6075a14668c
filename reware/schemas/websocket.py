"""WebSocket message schemas.

Client messages form a discriminated union on "type"; server frames are
render (full view state) and credentials (token the browser persists).
"""

from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, TypeAdapter


class HelloMessage(BaseModel):
    """First message of a connection: current location and persisted session."""

    type: Literal["hello"]
    path: str = Field(default="/", description="Browser location path")
    refresh_token: str | None = Field(default=None, description="Token persisted by the browser")


class NavigateMessage(BaseModel):
    type: Literal["navigate"]
    path: str = Field(..., min_length=1)


class SignInMessage(BaseModel):
    type: Literal["sign_in"]
    email: str
    password: str


class SignUpMessage(BaseModel):
    type: Literal["sign_up"]
    email: str
    password: str
    display_name: str | None = None


class SignOutMessage(BaseModel):
    type: Literal["sign_out"]


class CreateListingMessage(BaseModel):
    """Form fields are checked by the listing draft (required only)."""

    type: Literal["create_listing"]
    title: str = ""
    description: str = ""
    price: str = ""
    condition: str = "good"


class CreatePurchaseMessage(BaseModel):
    type: Literal["create_purchase"]
    title: str = ""
    price: str = ""


class DeleteListingMessage(BaseModel):
    type: Literal["delete_listing"]
    listing_id: str = Field(..., min_length=1)


class DeletePurchaseMessage(BaseModel):
    type: Literal["delete_purchase"]
    purchase_id: str = Field(..., min_length=1)


class BeginEditMessage(BaseModel):
    type: Literal["begin_edit"]
    user_id: str = Field(..., min_length=1)


class ChangeEditMessage(BaseModel):
    type: Literal["change_edit"]
    display_name: str | None = None
    role: str | None = None
    email: str | None = None


class SaveEditMessage(BaseModel):
    type: Literal["save_edit"]


class CancelEditMessage(BaseModel):
    type: Literal["cancel_edit"]


class DeleteUserMessage(BaseModel):
    type: Literal["delete_user"]
    user_id: str = Field(..., min_length=1)


class RefreshUsersMessage(BaseModel):
    type: Literal["refresh_users"]


ClientMessage = Annotated[
    Union[
        HelloMessage,
        NavigateMessage,
        SignInMessage,
        SignUpMessage,
        SignOutMessage,
        CreateListingMessage,
        CreatePurchaseMessage,
        DeleteListingMessage,
        DeletePurchaseMessage,
        BeginEditMessage,
        ChangeEditMessage,
        SaveEditMessage,
        CancelEditMessage,
        DeleteUserMessage,
        RefreshUsersMessage,
    ],
    Field(discriminator="type"),
]

client_message_adapter: TypeAdapter[ClientMessage] = TypeAdapter(ClientMessage)


def parse_client_message(raw: str | bytes) -> ClientMessage:
    """Validate one JSON text frame. Raises pydantic.ValidationError."""
    return client_message_adapter.validate_json(raw)


class RenderFrame(BaseModel):
    """Full state of the current view, pushed after every change."""

    type: Literal["render"] = "render"
    path: str
    view: str
    session: dict[str, Any]
    state: dict[str, Any] = Field(default_factory=dict)
    notifications: list[dict[str, Any]] = Field(default_factory=list)


class CredentialsFrame(BaseModel):
    """Token the browser stores to resume the session; None clears it."""

    type: Literal["credentials"] = "credentials"
    refresh_token: str | None = None


class SessionCountResponse(BaseModel):
    """Response for GET /health/sessions."""

    active_sessions: int = Field(..., description="Number of connected browser sessions")
