"""Models for payment receipt verification."""

from pydantic import BaseModel, ConfigDict, Field, StrictBool


class PaymentVerdict(BaseModel):
    """Structured answer of the receipt classifier."""

    model_config = ConfigDict(populate_by_name=True)

    is_valid: StrictBool = Field(alias="isValid")
    reason: str = ""
