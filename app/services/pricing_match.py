"""Match pricing items to a hunt by species, weapon and number of days.

Used when the bill section of a hunt contract is generated.
"""

from __future__ import annotations

import math
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from app.services.hunt_codes import text_sort_key

SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class PricingItemView:
    id: int
    title: str
    amount_usd: Decimal
    category: str | None = None
    description: str | None = None
    species: str | None = None
    weapons: str | None = None
    included_days: int | None = None

    def as_dict(self) -> dict:
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'category': self.category,
            'amount_usd': str(self.amount_usd),
            'species': self.species,
            'weapons': self.weapons,
            'included_days': self.included_days,
        }


def normalize_weapon_for_pricing(weapon: str | None) -> str | None:
    cleaned = (weapon or '').strip()
    if not cleaned:
        return None
    if cleaned == 'Bow':
        return 'Archery'
    return cleaned


def _parse_moment(value: str | date | None) -> datetime | None:
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime(value.year, value.month, value.day)
    else:
        raw = str(value).strip()
        if not raw:
            return None
        try:
            moment = datetime.fromisoformat(raw.replace('Z', '+00:00'))
        except ValueError:
            return None
    # Values without an offset are read as UTC.
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def hunt_days_from_range(start: str | date | None, end: str | date | None) -> int | None:
    """Number of hunt days covered by a start and end moment.

    The elapsed time is rounded to whole days (halves round up) and one is
    added, so a range that starts and ends on the same midnight counts as one
    day. Returns None when either side is missing or unparseable, or when the
    count is below one.
    """
    start_moment = _parse_moment(start)
    end_moment = _parse_moment(end)
    if start_moment is None or end_moment is None:
        return None
    elapsed_days = (end_moment - start_moment).total_seconds() / SECONDS_PER_DAY
    days = math.floor(elapsed_days + 0.5) + 1
    return days if days >= 1 else None


def _split_list(value: str | None) -> list[str]:
    return [part.strip() for part in (value or '').split(',') if part.strip()]


def pricing_item_matches_hunt(
    item: PricingItemView,
    species: str | None,
    weapon: str | None,
    days: int | None,
) -> bool:
    species_list = _split_list(item.species)
    weapon_list = _split_list(item.weapons)

    if species_list and species:
        wanted = species.strip().lower()
        if not any(entry.lower() == wanted for entry in species_list):
            return False

    if weapon_list and weapon:
        normalized = normalize_weapon_for_pricing(weapon)
        if not normalized or not any(entry.lower() == normalized.lower() for entry in weapon_list):
            return False

    if item.included_days is not None and days is not None and item.included_days != days:
        return False

    return True


def match_pricing_for_hunt(
    items: Iterable[PricingItemView],
    species: str | None,
    weapon: str | None,
    days: int | None,
) -> list[PricingItemView]:
    matched = [item for item in items if pricing_item_matches_hunt(item, species, weapon, days)]
    return sorted(matched, key=lambda item: (text_sort_key(item.category), text_sort_key(item.title)))

