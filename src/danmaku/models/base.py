"""Base Pydantic model configuration for danmaku wire models.

Models decoded from server JSON inherit from DanmakuBaseModel:
- Immutability (frozen=True) so events can be shared between tasks
- Tolerant parsing (extra="ignore"): the server attaches many fields we do not model
- Flexible field naming (populate_by_name=True) for alias support
"""

from pydantic import BaseModel, ConfigDict


class DanmakuBaseModel(BaseModel):
    """Base model for all decoded server payloads."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
        validate_default=True,
    )
