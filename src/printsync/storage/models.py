"""Persistent models for printer connection profiles.

Field names match the stored record format (``serverUrl``, ``apiKey``) so
records written by earlier releases load unchanged.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class ProfileDraft(BaseModel):
    """Operator-supplied profile fields, everything except the id."""

    name: str = Field(min_length=1)
    serverUrl: str = Field(min_length=1)
    apiKey: str = Field(min_length=1)
    color: str | None = None

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class PrinterProfile(ProfileDraft):
    """A named printer connection record (address + credential)."""

    id: str = Field(min_length=1)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True, frozen=True)

    @property
    def base_url(self) -> str:
        """Server URL with trailing slashes removed, ready for path joining."""
        return self.serverUrl.rstrip("/")


class ProfilePatch(BaseModel):
    """Partial update; fields left unset are not touched.

    Has no ``id`` field: a profile id never changes. ``color`` may be
    explicitly set to None to clear it; None for the other fields is ignored.
    """

    name: str | None = Field(default=None, min_length=1)
    serverUrl: str | None = Field(default=None, min_length=1)
    apiKey: str | None = Field(default=None, min_length=1)
    color: str | None = None

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)
