"""Pydantic request/response schemas for the storefront and admin APIs.

These are the external contracts. Aggregates are converted with the
``from_*`` constructors so no Protean object leaks into a response.
"""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Shared
# ---------------------------------------------------------------------------
class PageResponse(BaseModel, Generic[T]):
    items: list[T]
    page: int
    totalPages: int
    totalItems: int

    @classmethod
    def from_page(cls, page, convert):
        return cls(**page.to_dict(convert))


# ---------------------------------------------------------------------------
# Orders
# ---------------------------------------------------------------------------
class LineItemRequest(BaseModel):
    product_id: str
    quantity: int = Field(ge=1, default=1)


class PlaceOrderRequest(BaseModel):
    items: list[LineItemRequest] = Field(min_length=1)

    model_config = {
        "json_schema_extra": {
            "examples": [
                {
                    "items": [
                        {"product_id": "med-001", "quantity": 2},
                        {"product_id": "med-002", "quantity": 1},
                    ]
                }
            ]
        }
    }


class UpdateOrderStatusRequest(BaseModel):
    status: str | None = None
    delivery_status: str | None = None


class OrderItemResponse(BaseModel):
    product_id: str
    name: str | None = None
    quantity: int
    unit_price: float
    subtotal: float


class AddressSnapshotResponse(BaseModel):
    full_name: str | None = None
    phone: str | None = None
    line1: str | None = None
    line2: str | None = None
    city: str | None = None
    zip: str | None = None


class PaymentSnapshotResponse(BaseModel):
    card_holder_name: str | None = None
    masked_card_number: str | None = None
    brand: str | None = None
    expiry: str | None = None


class OrderResponse(BaseModel):
    id: str
    user_id: str
    items: list[OrderItemResponse]
    total_amount: float
    currency: str
    status: str
    delivery_status: str
    address: AddressSnapshotResponse | None = None
    payment: PaymentSnapshotResponse | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    delivered_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_order(cls, order) -> "OrderResponse":
        return cls(
            id=str(order.id),
            user_id=str(order.user_id),
            items=[
                OrderItemResponse(
                    product_id=str(item.product_id),
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    subtotal=item.subtotal,
                )
                for item in order.items
            ],
            total_amount=order.total_amount,
            currency=order.currency,
            status=order.status,
            delivery_status=order.delivery_status,
            address=AddressSnapshotResponse(**order.address.to_dict()) if order.address else None,
            payment=PaymentSnapshotResponse(**order.payment.to_dict()) if order.payment else None,
            created_at=order.created_at,
            updated_at=order.updated_at,
            delivered_at=order.delivered_at,
            cancelled_at=order.cancelled_at,
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------
class SubmitReviewRequest(BaseModel):
    order_id: str
    product_id: str
    rating: int
    comment: str | None = None


class EditReviewRequest(BaseModel):
    rating: int | None = None
    comment: str | None = None


class DeactivateReviewRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class ReviewResponse(BaseModel):
    id: str
    product_id: str
    user_id: str
    order_id: str
    rating: int
    comment: str | None = None
    is_active: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @classmethod
    def from_review(cls, review) -> "ReviewResponse":
        return cls(
            id=str(review.id),
            product_id=str(review.product_id),
            user_id=str(review.user_id),
            order_id=str(review.order_id),
            rating=review.rating,
            comment=review.comment,
            is_active=review.is_active,
            created_at=review.created_at,
            updated_at=review.updated_at,
        )


class RatingResponse(BaseModel):
    product_id: str
    average: float
    count: int


class RatingMeta(BaseModel):
    average: float
    count: int
    distribution: dict[int, int]


class ProductReviewsResponse(PageResponse[ReviewResponse]):
    meta: RatingMeta


# ---------------------------------------------------------------------------
# Catalogue / customers (admin listings)
# ---------------------------------------------------------------------------
class MedicineResponse(BaseModel):
    id: str
    name: str
    manufacturer: str | None = None
    category: str | None = None
    price: float
    rating: float
    reviews_count: int
    is_deleted: bool

    @classmethod
    def from_medicine(cls, medicine) -> "MedicineResponse":
        return cls(
            id=str(medicine.id),
            name=medicine.name,
            manufacturer=medicine.manufacturer,
            category=medicine.category,
            price=medicine.price,
            rating=medicine.rating or 0.0,
            reviews_count=medicine.reviews_count or 0,
            is_deleted=bool(medicine.is_deleted),
        )


class CustomerResponse(BaseModel):
    id: str
    name: str
    email: str
    role: str
    city: str | None = None
    orders_count: int
    total_spend: float

    @classmethod
    def from_row(cls, row) -> "CustomerResponse":
        customer = row.customer
        return cls(
            id=str(customer.id),
            name=customer.name,
            email=customer.email,
            role=customer.role,
            city=customer.address.city if customer.address else None,
            orders_count=row.orders_count,
            total_spend=row.total_spend,
        )


# ---------------------------------------------------------------------------
# Analytics
# ---------------------------------------------------------------------------
class MonthlyEarningsResponse(BaseModel):
    year: int
    monthly_totals: list[float]
    total: float


class RankedTotalResponse(BaseModel):
    name: str
    total: float


class DashboardStatsResponse(BaseModel):
    users: int
    total_orders: int
    orders_by_status: dict[str, int]
    total_amount: float
    mean_order_amount: float


class TimeWindowResponse(BaseModel):
    start: str
    end: str


class AnalyticsSnapshotResponse(BaseModel):
    window: TimeWindowResponse
    order_count: int
    revenue: float
    mean_order_value: float
    orders_by_status: dict[str, int]
    monthly_revenue: dict[str, float]
    top_manufacturers: list[RankedTotalResponse]
    top_medicines: list[RankedTotalResponse]
