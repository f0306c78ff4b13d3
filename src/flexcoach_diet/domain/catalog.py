"""Domain models for the external food catalog."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FoodSummary:
    """A catalog search hit."""

    fdc_id: int
    description: str
    brand_owner: str | None
    data_type: str | None
