from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from app.auth import Principal, get_current_principal
from app.services.hunt_code_catalog import (
    YEAR_NOTE,
    HuntCodeCatalogInvalid,
    HuntCodeCatalogNotFound,
    HuntCodeNotFound,
    get_hunt_code,
    load_hunt_code_catalog,
)
from app.services.hunt_codes import HuntCodeOption, filter_hunt_codes, weapon_digit, weapon_digit_to_label

router = APIRouter(prefix='/api/hunt-codes', tags=['hunt-codes'])


def get_hunt_code_catalog() -> tuple[HuntCodeOption, ...]:
    try:
        return load_hunt_code_catalog()
    except HuntCodeCatalogNotFound as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
    except HuntCodeCatalogInvalid as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc


def _serialize(option: HuntCodeOption) -> dict:
    payload = option.as_dict()
    payload['tag_type'] = weapon_digit_to_label(weapon_digit(option.code))
    return payload


@router.get('')
def list_hunt_codes(
    code: str | None = None,
    species: str | None = None,
    weapon: str | None = None,
    _: Principal = Depends(get_current_principal),
    catalog: tuple[HuntCodeOption, ...] = Depends(get_hunt_code_catalog),
):
    if code and code.strip():
        try:
            option = get_hunt_code(catalog, code)
        except HuntCodeNotFound as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc)) from exc
        return _serialize(option)

    if species is not None:
        options = filter_hunt_codes(catalog, species.strip(), (weapon or '').strip())
        return {'codes': [_serialize(option) for option in options], 'species': species, 'weapon': weapon}

    return {'codes': [_serialize(option) for option in catalog], 'year_note': YEAR_NOTE}
