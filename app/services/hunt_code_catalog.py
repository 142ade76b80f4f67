from __future__ import annotations

import csv
import logging
from functools import lru_cache
from io import StringIO
from pathlib import Path

from app.config import settings
from app.services.hunt_codes import HuntCodeOption

logger = logging.getLogger(__name__)

CODE_HEADERS = ('hunt_code', 'huntcode', 'code')
SPECIES_HEADERS = ('species',)
UNIT_HEADERS = ('unit_description', 'unitdescription', 'unit')
SEASON_HEADERS = ('season_text', 'seasontext', 'season')
START_HEADERS = ('start_date', 'startdate')
END_HEADERS = ('end_date', 'enddate')

YEAR_NOTE = (
    'Update public/data/hunt-codes.csv (or NMHuntCodes_*_clean.csv) each year '
    'when NMDGF publishes new codes.'
)


class HuntCodeCatalogError(Exception):
    pass


class HuntCodeCatalogNotFound(HuntCodeCatalogError):
    pass


class HuntCodeCatalogInvalid(HuntCodeCatalogError):
    pass


class HuntCodeNotFound(LookupError):
    pass


def _column(header: list[str], names: tuple[str, ...]) -> int | None:
    for idx, name in enumerate(header):
        if name in names:
            return idx
    return None


def _cell(row: list[str], idx: int | None) -> str:
    if idx is None or idx >= len(row):
        return ''
    return (row[idx] or '').strip()


def parse_hunt_codes_csv(text: str) -> list[HuntCodeOption]:
    normalized = text.lstrip('\ufeff').replace('\r\n', '\n').replace('\r', '\n')
    rows = [row for row in csv.reader(StringIO(normalized)) if row]
    if len(rows) < 2:
        return []

    header = [name.strip().lower() for name in rows[0]]
    code_idx = _column(header, CODE_HEADERS)
    if code_idx is None:
        raise HuntCodeCatalogInvalid('CSV must have a hunt_code (or code) column.')
    species_idx = _column(header, SPECIES_HEADERS)
    unit_idx = _column(header, UNIT_HEADERS)
    season_idx = _column(header, SEASON_HEADERS)
    start_idx = _column(header, START_HEADERS)
    end_idx = _column(header, END_HEADERS)

    options: list[HuntCodeOption] = []
    for row in rows[1:]:
        code = _cell(row, code_idx)
        if not code:
            continue
        options.append(
            HuntCodeOption(
                code=code,
                species=_cell(row, species_idx),
                unit_description=_cell(row, unit_idx),
                season_text=_cell(row, season_idx),
                start_date=_cell(row, start_idx) or None,
                end_date=_cell(row, end_idx) or None,
            )
        )
    return options


def find_catalog_file(directory: str | Path, filenames: list[str] | tuple[str, ...]) -> Path:
    base = Path(directory)
    for name in filenames:
        candidate = base / name
        if candidate.is_file():
            return candidate
    raise HuntCodeCatalogNotFound(
        f'Hunt codes CSV not found. Add {base / filenames[0]} (or NMHuntCodes_*_clean.csv).'
        if filenames
        else f'Hunt codes CSV not found in {base}.'
    )


@lru_cache(maxsize=4)
def _load_catalog_file(path: str, mtime_ns: int) -> tuple[HuntCodeOption, ...]:
    options = parse_hunt_codes_csv(Path(path).read_text(encoding='utf-8'))
    logger.info('Loaded %d hunt codes from %s', len(options), path)
    return tuple(options)


def load_hunt_code_catalog(
    directory: str | Path | None = None,
    filenames: list[str] | tuple[str, ...] | None = None,
) -> tuple[HuntCodeOption, ...]:
    """Return the current catalog snapshot, re-reading the file when it changes on disk."""
    path = find_catalog_file(
        directory if directory is not None else settings.hunt_codes_dir,
        filenames if filenames is not None else settings.hunt_codes_filenames,
    )
    return _load_catalog_file(str(path), path.stat().st_mtime_ns)


def find_hunt_code(options: list[HuntCodeOption] | tuple[HuntCodeOption, ...], code: str | None) -> HuntCodeOption | None:
    wanted = (code or '').strip().upper()
    if not wanted:
        return None
    for option in options:
        if option.code.upper() == wanted:
            return option
    return None


def get_hunt_code(options: list[HuntCodeOption] | tuple[HuntCodeOption, ...], code: str) -> HuntCodeOption:
    option = find_hunt_code(options, code)
    if option is None:
        raise HuntCodeNotFound(f'Hunt code not found: {(code or "").strip()}')
    return option
