"""
Pydantic models for request bodies.

Key features:
- frozen=True: Immutable after normalization (prevents downstream mutation)
- populate_by_name=True: Accept both camelCase alias and field name
- extra='ignore': Ignore undeclared fields (safe)
- town / flat type names upper-cased at the boundary, matching storage
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from constants import PREDICTION_COHORT_MONTHS
from utils.normalize import to_month
from utils.periods import earliest_anchor


class BaseParamsModel(BaseModel):
    """
    Base model for all request param schemas.

    - Frozen after creation (immutable)
    - Whitespace stripped from strings
    - Both alias and field name accepted
    - Unknown fields ignored
    """
    model_config = ConfigDict(
        frozen=True,
        str_strip_whitespace=True,
        populate_by_name=True,
        extra='ignore',
    )


class PricePredictionRequest(BaseParamsModel):
    """Body of POST /api/analytics/predict."""

    town: str = Field(min_length=1)
    flat_type: str = Field(alias='flatType', min_length=1)
    floor_area: Optional[float] = Field(default=None, alias='floorArea', gt=0, allow_inf_nan=False)
    remaining_lease: Optional[float] = Field(default=None, alias='remainingLease', ge=0, le=99, allow_inf_nan=False)
    as_of: Optional[str] = Field(default=None, alias='asOf')

    @field_validator('town', 'flat_type')
    @classmethod
    def upper_case_name(cls, v: str) -> str:
        return v.upper()

    @field_validator('as_of', mode='before')
    @classmethod
    def normalize_month(cls, v):
        if v is None or v == '':
            return None
        return to_month(v, min_value=earliest_anchor(PREDICTION_COHORT_MONTHS), field='asOf')

    def to_service_kwargs(self) -> dict:
        """Keyword arguments for services.prediction_service.predict_price."""
        return self.model_dump(by_alias=False)
