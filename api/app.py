from __future__ import annotations

from datetime import date

from fastapi import FastAPI, File, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from PIL import UnidentifiedImageError
from pydantic import BaseModel, Field

from carbonsnap.detector import ReceiptQualityResult
from carbonsnap.engine import assess_receipt_image, estimate_basket, estimate_item
from carbonsnap.image_io import load_pixels

app = FastAPI(
    title="CarbonSnap API",
    description="Lifecycle CO2e estimates for purchased goods + receipt photo quality checks.",
    version="0.2.0",
)

# ---------- Models ----------


class PurchaseContextIn(BaseModel):
    merchant: str | None = Field(None, examples=["Downtown Farmers Market"])
    location: str | None = Field(None, examples=["Toronto, Canada"])
    purchase_date: date | None = None


class ItemRequest(PurchaseContextIn):
    raw_name: str = Field(..., min_length=1, examples=["Organic Ground Beef 2 lbs"])
    quantity: float = Field(1.0, ge=0.0)


class BasketLine(BaseModel):
    raw_name: str = Field(..., min_length=1, examples=["Spinach 200g"])
    quantity: float = Field(1.0, ge=0.0)


class BasketRequest(PurchaseContextIn):
    items: list[BasketLine]


class Breakdown(BaseModel):
    production: float
    packaging: float
    transport: float
    use: float
    disposal: float


class ItemResponse(BaseModel):
    name: str
    raw_name: str
    category: str
    category_id: str
    quantity: float
    unit: str
    breakdown: Breakdown
    total_kg: float
    suggestions: list[str]
    confidence: float
    modifiers: list[str]


class BasketSummaryOut(BaseModel):
    highest_impact_category: str
    reduction_potential_kg: float
    improvement_score: int


class BasketResponse(BaseModel):
    items: list[ItemResponse]
    total_kg: float
    equivalents: list[str]
    summary: BasketSummaryOut
    by_category: dict[str, float]


class QualitySignalsOut(BaseModel):
    edge: float
    aspect: float
    text: float
    brightness: float
    color: float
    aspect_ratio: float
    sharpness: float


class ImageQualityResponse(BaseModel):
    is_receipt_detected: bool
    confidence: float
    suggestions: list[str]
    signals: QualitySignalsOut


# ---------- Emission estimates ----------


@app.post("/estimate-item", response_model=ItemResponse)
def estimate_item_endpoint(req: ItemRequest) -> ItemResponse:
    result = estimate_item(
        req.raw_name,
        quantity=req.quantity,
        merchant=req.merchant,
        location=req.location,
        purchase_date=req.purchase_date,
    )
    return ItemResponse(**result.to_dict())


@app.post("/estimate-basket", response_model=BasketResponse)
def estimate_basket_endpoint(req: BasketRequest) -> BasketResponse:
    result = estimate_basket(
        [line.model_dump() for line in req.items],
        merchant=req.merchant,
        location=req.location,
        purchase_date=req.purchase_date,
    )
    return BasketResponse(**result.to_dict())


# ---------- Receipt photo quality (upload image) ----------


def _assess_upload(data: bytes, enhance: bool) -> ReceiptQualityResult:
    try:
        buf = load_pixels(data)
    except (UnidentifiedImageError, OSError) as e:
        raise HTTPException(status_code=400, detail=f"Unreadable image: {e}") from e

    height, width = buf.shape[:2]
    try:
        return assess_receipt_image(buf, width, height, enhance=enhance)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


@app.post("/assess-image", response_model=ImageQualityResponse)
async def assess_image(
    file: UploadFile = File(...),  # noqa: B008
    enhance: bool = True,
) -> ImageQualityResponse:
    """Upload a receipt photo; returns whether it is usable plus hints for a retake."""
    data = await file.read()
    if not data:
        raise HTTPException(status_code=400, detail="Empty upload")

    # decode, filter chain and detector are CPU-bound; keep them off the event loop
    result = await run_in_threadpool(_assess_upload, data, enhance)
    return ImageQualityResponse(**result.to_dict())
