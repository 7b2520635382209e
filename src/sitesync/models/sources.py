from __future__ import annotations

from pydantic import BaseModel, field_validator


class Source(BaseModel):
    """A named update site the client synchronises with."""

    name: str
    url: str
    ssh_host: str | None = None
    upload_directory: str | None = None
    timestamp: int = 0  # last logical timestamp seen from this site

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("source name must not be empty")
        return v

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        v = v.strip()
        if not v.endswith("/"):
            v += "/"
        return v

    def index_url(self, index_filename: str) -> str:
        return self.url + index_filename
