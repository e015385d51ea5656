#!/usr/bin/env python3
"""
Player stats importer.

Parses comma-delimited stats exports into the canonical raw-record table.
Both the source export headers (Player_Name, Kill_All, Kast_All, ...) and
the canonical snake_case headers written by the exporter are accepted, so a
results file can be fed straight back in.

An import either succeeds completely or raises ImportRejectedError; no
partial record set is ever returned.
"""

import io
import pandas as pd
import numpy as np
import pandera as pa
from pathlib import Path
from typing import Dict, List, Optional, Union
import logging

from src.normalizers.agent_roles import resolve_role, is_known_agent, UNKNOWN_ROLE
from src.schema.player_stats_schema import (
    RAW_TEXT_FIELDS, RAW_NUMERIC_FIELDS, RawPlayerSchema, validate_dataframe
)

logger = logging.getLogger(__name__)


class ImportRejectedError(ValueError):
    """Raised when a stats table is structurally malformed."""


# Canonical field -> accepted headers (matched case-insensitively)
COLUMN_ALIASES: Dict[str, List[str]] = {
    'name': ['name', 'Player_Name', 'player', 'player_name'],
    'agent': ['agent', 'Agent'],
    'role': ['role', 'Role'],
    'rounds': ['rounds', 'rounds_played', 'Rounds_All'],
    'attack_rounds': ['attack_rounds', 'Attack_Got_Round'],
    'defense_rounds': ['defense_rounds', 'Defense_Got_Round', 'Defence_Got_Round'],
    'kills': ['kills', 'Kill_All'],
    'deaths': ['deaths', 'Death_All'],
    'assists': ['assists', 'Assists_All'],
    'first_kills': ['first_kills', 'Fk_All'],
    'first_deaths': ['first_deaths', 'Fd_All'],
    'two_kills': ['two_kills', '2k_All'],
    'three_kills': ['three_kills', '3k_All'],
    'four_kills': ['four_kills', '4k_All'],
    'five_kills': ['five_kills', '5k_All'],
    'clutch_wins': ['clutch_wins', 'Clutch_All'],
    'plants': ['plants', 'Plant_All'],
    'defuses': ['defuses', 'Defuse_All'],
    'trade_kills': ['trade_kills', 'Trade_All'],
    'non_damage_assists': ['non_damage_assists', 'Nda_All'],
    'acs': ['acs', 'Acs_All'],
    'adr': ['adr', 'Adr_All'],
    'total_damage': ['total_damage', 'Damage_All'],
    'kast_percent': ['kast_percent', 'Kast_All'],
    'hs_percent': ['hs_percent', 'Hs_All'],
    'kills_attack': ['kills_attack', 'Kill_Attack'],
    'kills_defense': ['kills_defense', 'Kill_Defence', 'Kill_Defense'],
    'deaths_attack': ['deaths_attack', 'Death_Attack'],
    'deaths_defense': ['deaths_defense', 'Death_Defence', 'Death_Defense'],
    'assists_attack': ['assists_attack', 'Assists_Attack'],
    'assists_defense': ['assists_defense', 'Assists_Defence', 'Assists_Defense'],
    'acs_attack': ['acs_attack', 'Acs_Attack'],
    'acs_defense': ['acs_defense', 'Acs_Defence', 'Acs_Defense'],
    'adr_attack': ['adr_attack', 'Adr_Attack'],
    'adr_defense': ['adr_defense', 'Adr_Defence', 'Adr_Defense'],
    'kast_attack': ['kast_attack', 'Kast_Attack'],
    'kast_defense': ['kast_defense', 'Kast_Defence', 'Kast_Defense'],
    'hs_attack': ['hs_attack', 'Hs_Attack'],
    'hs_defense': ['hs_defense', 'Hs_Defence', 'Hs_Defense'],
}

# Fields that may carry a trailing percent sign
PERCENT_FIELDS = frozenset({
    'kast_percent', 'hs_percent',
    'kast_attack', 'kast_defense', 'hs_attack', 'hs_defense',
})


def resolve_columns(headers: List[str]) -> Dict[str, str]:
    """
    Match table headers to canonical fields.

    Args:
        headers: Header row of the table

    Returns:
        Dictionary of canonical field -> header actually present
    """
    present = {h.strip().lower(): h for h in headers}
    resolved = {}
    for field, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias.lower() in present:
                resolved[field] = present[alias.lower()]
                break
    return resolved


def coerce_numeric(values: pd.Series, percent: bool = False) -> pd.Series:
    """
    Coerce text cells to floats; blanks and junk become 0.

    Example:
        >>> coerce_numeric(pd.Series(["75%", "", "x"]), percent=True).tolist()
        [75.0, 0.0, 0.0]
    """
    text = values.fillna("").astype(str).str.strip()
    if percent:
        text = text.str.rstrip('%').str.strip()
    numbers = pd.to_numeric(text, errors='coerce')
    return numbers.replace([np.inf, -np.inf], np.nan).fillna(0.0).astype(float)


def _read_table(text: str) -> pd.DataFrame:
    """Tokenize CSV text into a frame of strings, rejecting malformed input."""
    if text is None or not str(text).strip():
        raise ImportRejectedError("Stats table is empty")

    try:
        table = pd.read_csv(io.StringIO(str(text).strip()), dtype=str,
                            keep_default_na=False, skip_blank_lines=True)
    except (pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise ImportRejectedError(f"Malformed stats table: {e}") from e

    # pandas silently turns surplus leading fields into an index
    if len(table) and not isinstance(table.index, pd.RangeIndex):
        raise ImportRejectedError("Malformed stats table: rows have more fields than the header")

    return table.fillna("")


def _build_records(table: pd.DataFrame, columns: Dict[str, str]) -> pd.DataFrame:
    """Map a tokenized table onto the canonical raw-record columns."""
    records = pd.DataFrame(index=table.index)

    for field in RAW_TEXT_FIELDS:
        col = columns.get(field)
        records[field] = table[col].astype(str).str.strip() if col else ""

    for field in RAW_NUMERIC_FIELDS:
        col = columns.get(field)
        if col:
            records[field] = coerce_numeric(table[col], percent=field in PERCENT_FIELDS)
        else:
            records[field] = 0.0

    if 'rounds' not in columns:
        records['rounds'] = records['attack_rounds'] + records['defense_rounds']

    if 'total_damage' not in columns:
        records['total_damage'] = records['adr'] * records['rounds']

    # Explicit role wins; otherwise look the agent up
    looked_up = records['agent'].map(resolve_role)
    records['role'] = records['role'].where(records['role'] != "", looked_up)

    unmapped = sorted({a for a in records.loc[records['role'] == UNKNOWN_ROLE, 'agent'] if a})
    unmapped = [a for a in unmapped if not is_known_agent(a)]
    if unmapped:
        logger.warning(f"Unmapped agents resolved to '{UNKNOWN_ROLE}': {unmapped}")

    return records[RAW_TEXT_FIELDS + RAW_NUMERIC_FIELDS]


def import_records(text: str) -> pd.DataFrame:
    """
    Parse a stats table into raw player records.

    Args:
        text: Comma-delimited text with a header row

    Returns:
        Validated DataFrame with the canonical RAW_FIELDS columns

    Raises:
        ImportRejectedError: Unbalanced quoting, ragged rows, empty text,
            no player-name column, or a schema violation
    """
    table = _read_table(text)
    columns = resolve_columns(list(table.columns))

    if 'name' not in columns:
        raise ImportRejectedError(
            f"Stats table has no player name column; header was {list(table.columns)}"
        )

    unknown = [h for h in table.columns if h not in columns.values()]
    if unknown:
        logger.debug(f"Ignoring columns: {unknown}")

    records = _build_records(table.reset_index(drop=True), columns)

    try:
        records = validate_dataframe(records, RawPlayerSchema)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        raise ImportRejectedError(f"Stats table failed validation: {e}") from e

    logger.info(f"Imported {len(records)} player records "
                f"({len(columns)}/{len(COLUMN_ALIASES)} fields present)")
    return records


def import_records_file(path: Union[str, Path], encoding: Optional[str] = 'utf-8-sig') -> pd.DataFrame:
    """
    Read and parse a stats file.

    Raises:
        ImportRejectedError: If the contents are malformed or not in the
            expected encoding
        OSError: If the file cannot be read
    """
    path = Path(path)
    logger.info(f"Loading player stats from {path}")

    try:
        text = path.read_text(encoding=encoding)
    except UnicodeDecodeError as e:
        raise ImportRejectedError(f"{path.name} is not valid {encoding} text: {e}") from e

    return import_records(text)
