from pydantic import BaseModel, Field
from typing import Optional, Literal


class PurchaseRequest(BaseModel):
    item_id: int
    quantity: int = Field(1, ge=1)


class OrderCreate(BaseModel):
    item_id: Optional[int] = None
    quantity: int = Field(1, ge=1)


class PaymentProofSubmit(BaseModel):
    # Reference produced by the upload handler (stored path or URL), never the bytes
    proof_url: str


class OrderStatusUpdate(BaseModel):
    status: Literal["rejected", "successful"]
    reason: Optional[str] = None
    item_id: Optional[int] = None
    quantity: Optional[int] = Field(None, ge=1)
