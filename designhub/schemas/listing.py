from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from designhub.schemas.design import DesignOut


class ListingSubmit(BaseModel):
    base_product_id: str = Field(min_length=1, max_length=120)
    # raw base64, or a data:image/...;base64, URI
    artwork_base64: str = Field(min_length=1)
    # validated by the intake service so the error is InvalidPolicy, not a 422 schema error
    post_decision_policy: str = "AUTO_PUBLISH"


class ListingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    vendor_id: str
    base_product_id: str
    design_id: str | None
    status: str
    is_validated: bool
    post_decision_policy: str
    validated_at: datetime | None
    validated_by: str | None
    rejection_reason: str | None


class ListingSubmitOut(BaseModel):
    listing: ListingOut
    design: DesignOut
    deduplicated: bool
