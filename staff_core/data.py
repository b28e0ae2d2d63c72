from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from functools import lru_cache
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

import pandas as pd

from staff_core import config
from staff_core.aggregations import as_number, summarize
from staff_core.crossfilter import ViewState, normalize_view_state
from staff_core.filters import apply_filters

logger = logging.getLogger(__name__)

ENRICHED_COLUMNS = ["UnitName", "GroupID", "GroupName", "LocationName", "JobTitle"]


class LoadFailure(Exception):
    """A source table could not be read or decoded; the dataset is unavailable."""

    def __init__(self, table: str, message: str):
        super().__init__(f"{table}: {message}")
        self.table = table


@dataclass(frozen=True)
class RowDiagnostic:
    table: str
    row: int
    column: str
    value: str
    reason: str


def get_source_files(data_dir: Optional[Path] = None) -> Dict[str, Path]:
    base = Path(data_dir) if data_dir is not None else Path(config.DATA_DIR)
    return {table: base / name for table, name in config.SOURCE_FILES.items()}


def file_signature(files: Mapping[str, Path]) -> Tuple[Tuple[str, str, float], ...]:
    sig = []
    for table, path in files.items():
        try:
            mtime = path.stat().st_mtime
        except OSError as exc:
            raise LoadFailure(table, f"cannot access {path}: {exc}") from exc
        sig.append((table, str(path), mtime))
    return tuple(sig)


def read_table(path: Path, table: str) -> pd.DataFrame:
    """Read one CSV as text with trimmed header names."""
    try:
        df = pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
    except (OSError, UnicodeDecodeError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
        raise LoadFailure(table, f"could not read {path.name}: {exc}") from exc
    df.columns = [str(c).strip() for c in df.columns]
    duplicated = df.columns[df.columns.duplicated()].unique().tolist()
    if duplicated:
        raise LoadFailure(table, f"duplicate column names after trimming: {duplicated}")
    return df


def _tidy_numeric(series: pd.Series) -> pd.Series:
    values = series.dropna()
    if values.empty or (values % 1 == 0).all():
        return series.astype("Int64")
    return series.astype(float)


def decode_table(df: pd.DataFrame, table: str) -> Tuple[pd.DataFrame, List[RowDiagnostic]]:
    """Coerce a raw text table to its schema.

    Rows whose numeric fields cannot be parsed (or carry a negative staff
    count) are dropped and returned as diagnostics rather than left as NaN.
    """
    required, numeric = config.TABLE_SCHEMAS[table]
    missing = [col for col in required if col not in df.columns]
    if missing:
        raise LoadFailure(table, f"missing expected columns: {missing}")

    df = df.copy()
    for col in df.columns:
        df[col] = df[col].astype(str).str.strip()
    df = df[(df != "").any(axis=1)].copy()

    diagnostics: List[RowDiagnostic] = []
    bad = pd.Series(False, index=df.index)
    must_have = config.REQUIRED_VALUES.get(table, [])
    for col in numeric:
        text = df[col]
        parsed = pd.to_numeric(text.where(text != ""), errors="coerce")
        invalid = parsed.isna() & (text != "")
        reasons = pd.Series("not a number", index=df.index)
        if col in must_have:
            blank = text == ""
            invalid |= blank
            reasons = reasons.mask(blank, "missing value")
        if col == "StaffCount":
            negative = parsed < 0
            invalid |= negative
            reasons = reasons.mask(negative, "negative count")
        for idx in invalid[invalid].index:
            diagnostics.append(RowDiagnostic(table, int(idx) + 1, col, str(text[idx]), str(reasons[idx])))
        bad |= invalid
        df[col] = parsed

    if bad.any():
        logger.warning("%s: dropped %d row(s) with invalid fields", table, int(bad.sum()))
    df = df.loc[~bad].reset_index(drop=True)
    for col in numeric:
        df[col] = _tidy_numeric(df[col])
    for col in required:
        if col not in numeric:
            df[col] = df[col].replace("", pd.NA)
    return df, diagnostics


def _dedupe(df: pd.DataFrame, key: str, table: str) -> pd.DataFrame:
    dupes = df[key].duplicated(keep="last")
    if dupes.any():
        logger.warning("%s: %d duplicate %s value(s), keeping the last row", table, int(dupes.sum()), key)
    return df.loc[~dupes]


def resolution_gaps(
    groups: pd.DataFrame,
    units: pd.DataFrame,
    locations: pd.DataFrame,
    titles: pd.DataFrame,
    assignments: pd.DataFrame,
) -> Dict[str, int]:
    """Count assignments whose foreign keys have no reference row."""
    unit_found = assignments["UnitID"].isin(units["UnitID"].dropna())
    unit_group = assignments["UnitID"].map(units.drop_duplicates("UnitID", keep="last").set_index("UnitID")["GroupID"])
    group_found = unit_group.isin(groups["GroupID"].dropna())
    return {
        "unit": int((~unit_found).sum()),
        "group": int((unit_found & ~group_found).sum()),
        "location": int((~assignments["LocationID"].isin(locations["LocationID"].dropna())).sum()),
        "title": int((~assignments["TitleID"].isin(titles["TitleID"].dropna())).sum()),
    }


def join_assignments(
    groups: pd.DataFrame,
    units: pd.DataFrame,
    locations: pd.DataFrame,
    titles: pd.DataFrame,
    assignments: pd.DataFrame,
) -> pd.DataFrame:
    """Left-join every assignment with its unit, group, location and title.

    Row order and row count follow ``assignments``. Unresolved references
    get the "Unknown" display name; ``GroupID`` stays empty when the unit
    itself is unresolved.
    """
    unit_dim = _dedupe(units, "UnitID", "BusinessUnits")[["UnitID", "UnitName", "GroupID"]]
    group_dim = _dedupe(groups, "GroupID", "BusinessGroups")[["GroupID", "GroupName"]]
    location_dim = _dedupe(locations, "LocationID", "PayLocations")[["LocationID", "LocationName"]]
    title_dim = _dedupe(titles, "TitleID", "JobTitles")[["TitleID", "JobTitle"]]

    fact = assignments.drop(columns=[c for c in ENRICHED_COLUMNS if c in assignments.columns])
    enriched = (
        fact.merge(unit_dim, on="UnitID", how="left")
        .merge(group_dim, on="GroupID", how="left")
        .merge(location_dim, on="LocationID", how="left")
        .merge(title_dim, on="TitleID", how="left")
    )
    for col in ["UnitName", "GroupName", "LocationName", "JobTitle"]:
        enriched[col] = enriched[col].fillna(config.UNKNOWN).replace("", config.UNKNOWN).astype(str)

    for dim, count in resolution_gaps(groups, units, locations, titles, assignments).items():
        if count:
            logger.warning("Unresolved %s reference on %d assignment(s); using %r", dim, count, config.UNKNOWN)

    return enriched[list(fact.columns) + ENRICHED_COLUMNS].reset_index(drop=True)


def load_tables(files: Mapping[str, Path]) -> Tuple[Dict[str, pd.DataFrame], List[RowDiagnostic]]:
    tables: Dict[str, pd.DataFrame] = {}
    diagnostics: List[RowDiagnostic] = []
    for table, path in files.items():
        df, diags = decode_table(read_table(path, table), table)
        tables[table] = df
        diagnostics.extend(diags)
        logger.info("Loaded %s: %d records", path.name, len(df))
    return tables, diagnostics


@lru_cache(maxsize=4)
def _load_dashboard_data_cached(files_sig: Tuple[Tuple[str, str, float], ...]) -> Dict[str, object]:
    files = {table: Path(path) for table, path, _ in files_sig}
    tables, diagnostics = load_tables(files)

    groups = tables["BusinessGroups"]
    units = tables["BusinessUnits"]
    locations = tables["PayLocations"]
    titles = tables["JobTitles"]
    assignments = tables["StaffAssignments"]

    enriched = join_assignments(groups, units, locations, titles, assignments)
    return {
        "files": [str(path) for path in files.values()],
        "tables": tables,
        "enriched": enriched,
        "total_staff": as_number(assignments["StaffCount"].sum()) or 0,
        "counts": {
            "groups": int(len(groups)),
            "units": int(len(units)),
            "locations": int(len(locations)),
            "titles": int(len(titles)),
            "assignments": int(len(assignments)),
        },
        "baseline": summarize(enriched),
        "diagnostics": [asdict(d) for d in diagnostics],
        "resolution_gaps": resolution_gaps(groups, units, locations, titles, assignments),
    }


def load_dashboard_data(data_dir: Optional[Path] = None) -> Dict[str, object]:
    """Load all five tables, or raise :class:`LoadFailure` if any one fails."""
    files = get_source_files(data_dir)
    return _load_dashboard_data_cached(file_signature(files))


def clear_cache() -> None:
    _load_dashboard_data_cached.cache_clear()


def prepare_context(state: Union[ViewState, dict, None], data_ctx: Dict[str, object]) -> Dict[str, object]:
    enriched: pd.DataFrame = data_ctx.get("enriched", pd.DataFrame())  # type: ignore[assignment]
    view = normalize_view_state(state)
    filtered = apply_filters(enriched, view.filters, view.search)
    return {
        "state": view,
        "enriched": enriched,
        "filtered": filtered,
        "summary": summarize(filtered),
        "baseline": data_ctx.get("baseline", {}),
        "counts": data_ctx.get("counts", {}),
        "total_staff": data_ctx.get("total_staff", 0),
        "diagnostics": data_ctx.get("diagnostics", []),
        "resolution_gaps": data_ctx.get("resolution_gaps", {}),
    }
