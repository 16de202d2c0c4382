# storefront/schemas/checkout.py
from typing import Literal

from pydantic import ConfigDict
from sqlmodel import SQLModel


class CheckoutSessionRead(SQLModel):
    """
    Redirect target for the provider-hosted checkout page.
    """

    id: str
    url: str


class CheckoutStatusRequest(SQLModel):
    model_config = ConfigDict(extra="forbid")

    session_id: str


class CheckoutStatusRead(SQLModel):
    status: Literal["succeeded", "failed"]
