from typing import Literal, Union

from pydantic import BaseModel, ConfigDict, Field


# --- Value Objects ---
class AuthorizationContext(BaseModel):
    """
    Who is asking.
    `caller` is the immediate invoker (possibly a relaying contract),
    `originator` is the external account that started the call chain.
    """

    model_config = ConfigDict(frozen=True)

    caller: str
    originator: str

    @classmethod
    def direct(cls, account: str) -> "AuthorizationContext":
        """An account calling without any relay in between."""
        return cls(caller=account, originator=account)


class Collection(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    symbol: str


# --- Artwork Source (tagged variant) ---
class Derive(BaseModel):
    """Render the artwork from the identifier assigned at mint time."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["derive"] = "derive"


class Explicit(BaseModel):
    """
    Caller-supplied artwork.
    The identifier/artwork binding is advisory: any well-formed SVG data URI
    is accepted and stored as given.
    """

    model_config = ConfigDict(frozen=True)

    kind: Literal["explicit"] = "explicit"
    payload: str


ArtworkSource = Union[Derive, Explicit]


# --- Entities ---
class RewardUnit(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: int = Field(ge=0)
    owner: str
    artwork: str


# --- Events ---
class RewardClaimed(BaseModel):
    model_config = ConfigDict(frozen=True)

    recipient: str
    id: int
