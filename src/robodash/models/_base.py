"""Base model for bridge payloads.

Every wire-facing model inherits from :class:`BridgeModel`, which is
frozen, ignores unknown keys (ROS messages carry many fields we never
read), and drops ``None`` values before validation so field defaults
apply to explicit JSON ``null``.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator


class BridgeModel(BaseModel):
    """Base for rosbridge message and envelope models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        return {key: value for key, value in values.items() if value is not None}

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the plain dict sent over the bridge."""
        return self.model_dump(mode="json")
