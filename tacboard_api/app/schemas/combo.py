"""
Pydantic models for combo data.

``ComboCreate`` is deliberately permissive: ``name`` and ``frames`` are
optional at the schema level so that a missing field reaches the
repository, which reports it as a validation failure inside the usual
``{success: false, error}`` envelope.  Frames are opaque JSON values;
their structure belongs to the front-end.

``ComboRead`` is serialised with the wire names the board client
expects (``_id`` and ``createdAt``).
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, Field


class ComboCreate(BaseModel):
    """Schema for saving a new combo."""

    name: Optional[str] = Field(None, examples=["Pick and roll"])
    author: Optional[str] = Field(None, examples=["Coach"])
    frames: Optional[List[Any]] = Field(
        None,
        description="Ordered board snapshots; contents are not interpreted by the server",
        examples=[[{"players": [{"id": 1, "x": 120, "y": 80}], "ball": {"x": 118, "y": 84}}]],
    )


class ComboRead(BaseModel):
    """Schema for reading a combo from the API."""

    id: str = Field(..., alias="_id")
    name: str
    author: str
    frames: List[Any]
    created_at: datetime = Field(..., alias="createdAt")

    model_config = {
        "populate_by_name": True,
    }


class SuccessResponse(BaseModel):
    success: bool = True


class ComboCreatedResponse(SuccessResponse):
    combo: ComboRead


class ComboListResponse(SuccessResponse):
    combos: List[ComboRead]


class ErrorResponse(BaseModel):
    success: bool = False
    error: str
