"""
Payload shapes for the JSONPlaceholder ``/users`` and ``/posts`` resources.

Field names follow Python conventions; camelCase keys from the wire format are
mapped through aliases. Validation is strict: a JSON value of the wrong type
is rejected rather than coerced.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class _Payload(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True)


class Geo(_Payload):
    lat: str
    lng: str


class Address(_Payload):
    street: str
    suite: str
    city: str
    zipcode: str
    geo: Geo


class Company(_Payload):
    name: str
    catch_phrase: str = Field(alias="catchPhrase")
    bs: str


class User(_Payload):
    """A user record with nested address and company."""

    id: int
    name: str
    username: str
    email: str
    address: Address
    phone: str
    website: str
    company: Company


class Post(_Payload):
    user_id: int = Field(alias="userId")
    id: int
    title: str
    body: str
