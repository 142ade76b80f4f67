from decimal import Decimal

from sqlalchemy import select

from app.db import SessionLocal
from app.models import (
    MembershipRole,
    MembershipStatus,
    Outfitter,
    OutfitterMembership,
    PricingItem,
    Principal,
)
from app.security.passwords import hash_password


def _principal(db, *, email: str, password: str, full_name: str) -> Principal:
    principal = db.execute(select(Principal).where(Principal.email == email)).scalar_one_or_none()
    if not principal:
        principal = Principal(email=email, password_hash=hash_password(password), full_name=full_name, active=True)
        db.add(principal)
        db.flush()
    return principal


def _membership(db, *, outfitter: Outfitter, principal: Principal, role: MembershipRole, status: MembershipStatus) -> None:
    existing = db.execute(
        select(OutfitterMembership).where(
            OutfitterMembership.outfitter_id == outfitter.id,
            OutfitterMembership.user_id == principal.id,
        )
    ).scalar_one_or_none()
    if not existing:
        db.add(OutfitterMembership(outfitter_id=outfitter.id, user_id=principal.id, role=role, status=status))


def seed() -> None:
    with SessionLocal() as db:
        outfitter = db.execute(select(Outfitter).where(Outfitter.name == 'Gila High Country Outfitters')).scalar_one_or_none()
        if not outfitter:
            outfitter = Outfitter(name='Gila High Country Outfitters')
            db.add(outfitter)
            db.flush()

        owner = _principal(db, email='owner@example.com', password='ChangeMe123!', full_name='Demo Owner')
        guide = _principal(db, email='guide@example.com', password='ChangeMe123!', full_name='Invited Guide')
        _membership(db, outfitter=outfitter, principal=owner, role=MembershipRole.OWNER, status=MembershipStatus.ACTIVE)
        _membership(db, outfitter=outfitter, principal=guide, role=MembershipRole.GUIDE, status=MembershipStatus.INVITED)

        has_pricing = db.execute(
            select(PricingItem.id).where(PricingItem.outfitter_id == outfitter.id).limit(1)
        ).scalar_one_or_none()
        if not has_pricing:
            db.add_all(
                [
                    PricingItem(
                        outfitter_id=outfitter.id,
                        title='Guided Elk Hunt (5 day)',
                        category='Guide Fee',
                        amount_usd=Decimal('6500.00'),
                        species='Elk',
                        weapons='Rifle,Muzzleloader',
                        included_days=5,
                    ),
                    PricingItem(
                        outfitter_id=outfitter.id,
                        title='Archery Elk Hunt (7 day)',
                        category='Guide Fee',
                        amount_usd=Decimal('7200.00'),
                        species='Elk',
                        weapons='Archery',
                        included_days=7,
                    ),
                    PricingItem(
                        outfitter_id=outfitter.id,
                        title='Trophy Fee',
                        category='Add-on',
                        amount_usd=Decimal('1500.00'),
                    ),
                ]
            )

        db.commit()


if __name__ == '__main__':
    seed()
