"""Hunt code helpers shared by draw results and tags for sale.

NMDGF codes look like ``ELK-1-294``: the middle segment is the weapon digit
(1 = any legal weapon, 2 = bow, 3 = muzzleloader).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class HuntCodeOption:
    code: str
    species: str
    unit_description: str = ''
    season_text: str = ''
    start_date: str | None = None
    end_date: str | None = None

    def as_dict(self) -> dict:
        return {
            'code': self.code,
            'species': self.species,
            'unit_description': self.unit_description,
            'season_text': self.season_text,
            'start_date': self.start_date,
            'end_date': self.end_date,
        }


# Form species label -> species values used in the published catalog.
SPECIES_TO_CATALOG_SPECIES: dict[str, tuple[str, ...]] = {
    'Elk': ('ELK',),
    'Deer': ('DEER', 'MULE DEER', 'COUES DEER'),
    'Mule Deer': ('DEER', 'MULE DEER'),
    'Coues Deer': ('DEER', 'COUES DEER'),
    'Antelope': ('PRONGHORN', 'ANTELOPE'),
    'Oryx': ('ORYX',),
    'Ibex': ('IBEX',),
    'Barbary Sheep': ('BARBARY SHEEP', 'AOUAD'),
    'Aoudad': ('BARBARY SHEEP', 'AOUAD'),
    'Bighorn Sheep': ('BIGHORN SHEEP',),
}

WEAPON_TO_DIGIT: dict[str, str] = {
    'Rifle': '1',
    'Archery': '2',
    'Muzzleloader': '3',
}

DEFAULT_WEAPON_LABEL = 'Rifle'


def weapon_digit_to_label(digit: str | None) -> str:
    if digit == '2':
        return 'Archery'
    if digit == '3':
        return 'Muzzleloader'
    return DEFAULT_WEAPON_LABEL


def weapon_digit(code: str | None) -> str | None:
    parts = (code or '').split('-')
    if len(parts) < 2:
        return None
    return parts[1]


def _species_matches(raw_species: str | None, aliases: tuple[str, ...]) -> bool:
    normalized = (raw_species or '').strip().upper()
    return any(normalized == alias or alias in normalized for alias in aliases)


def text_sort_key(value: str | None) -> tuple[str, str]:
    """Case-insensitive ordering with a deterministic tie-break on the raw text."""
    text = value or ''
    return (text.casefold(), text)


def _sorted_by_code(options: Iterable[HuntCodeOption]) -> list[HuntCodeOption]:
    return sorted(options, key=lambda option: text_sort_key(option.code))


def filter_hunt_codes(
    options: Iterable[HuntCodeOption],
    species: str | None,
    weapon: str | None,
) -> list[HuntCodeOption]:
    """Narrow catalog options to a species and weapon, never narrowing to nothing.

    No species gives an empty list. An unknown species, or one that matches no
    option, gives every option back. A weapon filter that would empty the
    species matches is dropped. The result is always ordered by code.
    """
    candidates = list(options)
    if not species:
        return []

    aliases = SPECIES_TO_CATALOG_SPECIES.get(species)
    if aliases is None:
        return _sorted_by_code(candidates)

    filtered = [option for option in candidates if _species_matches(option.species, aliases)]
    if not filtered:
        return _sorted_by_code(candidates)

    digit = WEAPON_TO_DIGIT.get(weapon or '')
    if digit:
        by_weapon = [option for option in filtered if weapon_digit(option.code) == digit]
        if by_weapon:
            filtered = by_weapon

    return _sorted_by_code(filtered)
