from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.auth import TenantContext, require_tenant_role
from app.db import get_db
from app.models import PricingItem
from app.services.pricing_match import PricingItemView, hunt_days_from_range, match_pricing_for_hunt

router = APIRouter(prefix='/api/pricing', tags=['pricing'])


def list_pricing_items(db: Session, *, outfitter_id: str) -> list[PricingItemView]:
    rows = db.execute(
        select(PricingItem).where(PricingItem.outfitter_id == outfitter_id).order_by(PricingItem.id.asc())
    ).scalars().all()
    return [
        PricingItemView(
            id=row.id,
            title=row.title,
            amount_usd=row.amount_usd,
            category=row.category,
            description=row.description,
            species=row.species,
            weapons=row.weapons,
            included_days=row.included_days,
        )
        for row in rows
    ]


@router.get('/match')
def match_pricing(
    species: str | None = None,
    weapon: str | None = None,
    start: str | None = None,
    end: str | None = None,
    days: int | None = None,
    context: TenantContext = Depends(require_tenant_role()),
    db: Session = Depends(get_db),
):
    if days is not None and days < 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail='days must be at least 1')
    hunt_days = days if days is not None else hunt_days_from_range(start, end)

    items = list_pricing_items(db, outfitter_id=context.outfitter_id)
    matched = match_pricing_for_hunt(items, species, weapon, hunt_days)
    return {
        'outfitter_id': context.outfitter_id,
        'hunt_days': hunt_days,
        'items': [item.as_dict() for item in matched],
    }
