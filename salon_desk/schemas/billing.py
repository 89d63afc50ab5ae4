from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class LineItemInput(BaseModel):
    """A service line as entered at the counter.

    Price, duration and quantity are kept raw so the pricing stage can report
    its own validation messages instead of a schema error.
    """

    model_config = ConfigDict(populate_by_name=True)

    service_id: Optional[int] = Field(default=None, alias="serviceId")
    service_name: Optional[str] = Field(default=None, alias="serviceName")
    unit_price: Any = Field(default=None, alias="unitPrice")
    duration_minutes: Any = None
    quantity: Any = None
    staff_id: Optional[int] = Field(default=None, alias="staffId")
    staff_name: Optional[str] = Field(default=None, alias="staffName")


class PaymentInput(BaseModel):
    mode: Optional[str] = None
    amount: Any = None
    reference: Optional[str] = None


class BillRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    customer_id: Optional[int] = Field(default=None, alias="customerId")
    customer_name: Optional[str] = Field(default=None, alias="customerName")
    items: List[LineItemInput] = Field(default_factory=list)
    gst_rate: Optional[float] = Field(default=None, alias="gstRate")
    discount_amount: Optional[float] = Field(default=None, alias="discountAmount")
    payments: List[PaymentInput] = Field(default_factory=list)
    loyalty_redeem_points: Optional[float] = Field(
        default=None, alias="loyaltyRedeemPoints"
    )


class BillCreated(BaseModel):
    id: int
    customer_id: Optional[int] = None
    customer_name: str
    bill_date: str
    total_amount: float
    net_amount: float


class BillRecord(BaseModel):
    id: int
    customer_id: Optional[int] = None
    customer_name: str
    bill_date: str
    subtotal: float
    discount_amount: float
    gst_rate: float
    gst_amount: float
    total_amount: float
    net_amount: float
    status: str
    loyalty_points_earned: int
    loyalty_points_redeemed: int


class BillItemView(BaseModel):
    service_name: str
    staff_name: Optional[str] = None
    unit_price: float
    duration_minutes: int
    quantity: int
    line_total: float


class BillPaymentView(BaseModel):
    mode: str
    amount: float
    reference: Optional[str] = None


class BillDetail(BaseModel):
    bill: BillRecord
    items: List[BillItemView]
    payments: List[BillPaymentView] = Field(default_factory=list)


class BillingConfig(BaseModel):
    """Rates the billing transaction reads from the settings store."""

    gst_rate: float = Field(
        default=0.0, ge=0, allow_inf_nan=False, description="Tax rate in percent"
    )
    loyalty_rate: float = Field(
        default=0.0,
        ge=0,
        allow_inf_nan=False,
        description="Points earned per currency unit",
    )
