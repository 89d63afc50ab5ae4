from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BillingConfigUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    gst_rate: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, alias="gstRate")
    loyalty_rate: Optional[float] = Field(default=None, ge=0, allow_inf_nan=False, alias="loyaltyRate")
