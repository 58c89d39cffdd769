"""Reverse-geocoding response model."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

_LOCALITY_FIELDS: tuple[str, ...] = ("city", "town", "village", "county")


class GeocodeAddress(BaseModel):
    """Address components returned by a Nominatim-style reverse lookup.

    Only the components used to build a location label are modelled; the
    rest of the payload is kept in ``raw``.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
    )

    city: str | None = None
    town: str | None = None
    village: str | None = None
    county: str | None = None
    state: str | None = None
    country: str | None = None
    raw: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def _unwrap_address(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        address = values.get("address")
        if not isinstance(address, dict):
            return {"raw": values}
        cleaned = {key: value for key, value in address.items() if isinstance(value, str) and value.strip()}
        cleaned["raw"] = values
        return cleaned

    def label(self) -> str | None:
        """Human readable ``"<locality>, <region>"`` label, or ``None`` if nothing usable."""
        locality = next((getattr(self, name) for name in _LOCALITY_FIELDS if getattr(self, name)), None)
        region = self.state or self.country
        if locality and region:
            return f"{locality}, {region}"
        return locality or region
