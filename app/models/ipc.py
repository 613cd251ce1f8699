"""Line-delimited JSON envelopes exchanged over the local IPC socket."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel

from app.models.oembed.schemas import MetadataRecord


class IPCRequest(BaseModel):
    type: Literal["Request"]
    url: str


class IPCResponse(BaseModel):
    type: Literal["Response"] = "Response"
    data: MetadataRecord


class IPCError(BaseModel):
    type: Literal["Error"] = "Error"
    message: str
