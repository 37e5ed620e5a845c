"""
Shared Pydantic base models.

Produced models (fingerprints, diffs, validation results) inherit from StrictModel.
Models parsed from the capture service inherit from CaptureModel, which tolerates
fields we don't model - the capture service adds fields between releases.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class StrictModel(BaseModel):
    """Base model with strict validation settings."""

    model_config = ConfigDict(
        extra='forbid',  # Raise error on unexpected fields
        strict=True,  # Strict type validation
        frozen=True,  # Immutable (cannot modify after creation)
    )


class CaptureModel(BaseModel):
    """Base model for capture-service payloads (camelCase on the wire)."""

    model_config = ConfigDict(
        extra='ignore',  # Capture service may add fields
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )
