from __future__ import annotations

import logging
import re

from fastapi import APIRouter, Depends, HTTPException

from ...contracts import Restaurant
from ...metrics import booking_attempts_total
from ...providers import ProviderError, SearchProvider, get_search_provider
from ...schemas import BookRequest, BookResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


def _adhoc_restaurant(name: str) -> Restaurant:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")
    return Restaurant(id=f"adhoc-{slug}", name=name)


@router.post("/book", response_model=BookResponse)
async def book(payload: BookRequest, provider: SearchProvider = Depends(get_search_provider)):
    missing = payload.missing_fields()
    if missing:
        raise HTTPException(400, f"All booking details required (missing: {', '.join(missing)})")

    restaurant = _adhoc_restaurant(payload.restaurant_name or "")
    location = payload.location or ""
    date = payload.date or ""
    time = payload.time or ""
    party_size = payload.party_size or 1
    try:
        availability = await provider.check_availability(restaurant, location, date, time, party_size)
        if not availability.available:
            return BookResponse(
                success=False,
                available=False,
                message=availability.message,
                alternative_times=availability.alternative_times,
            )
        result = await provider.attempt_booking(restaurant, location, date, time, party_size)
    except ProviderError as exc:
        logger.warning("Direct booking for %s failed: %s", restaurant.name, exc)
        raise HTTPException(502, "Booking failed") from exc

    status = "confirmed" if result.success else "handoff" if result.requires_handoff else "failed"
    booking_attempts_total.labels(result=status).inc()
    return BookResponse(
        success=result.success,
        available=True,
        message=result.message,
        confirmation_number=result.confirmation_number,
        requires_handoff=result.requires_handoff,
        handoff_url=result.handoff_url,
    )
