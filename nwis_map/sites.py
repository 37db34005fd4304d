# sites.py – long-record NWIS sites, one state / territory at a time
from __future__ import annotations

import io
import logging
from typing import Iterable, Optional

import pandas as pd
import requests

from .models import SITE_COLUMNS, BatchResult, FetchOutcome, SiteQuery

logger = logging.getLogger("nwis_map.sites")

_DAYS_PER_YEAR = 365.25


class SiteServiceError(RuntimeError):
    """The NWIS site service answered with something we cannot use."""


# --------------------------------------------------------------------------- #
# Helpers                                                                     #
# --------------------------------------------------------------------------- #
def parse_rdb(text: str) -> pd.DataFrame:
    """
    Parse a USGS RDB (tab-delimited) payload.

    Comment lines start with ``#``; the header is followed by a
    column-format row (``5s  15s  ...``) which is dropped.
    """
    if not text.strip():
        return pd.DataFrame(columns=SITE_COLUMNS)
    df = pd.read_csv(io.StringIO(text), sep="\t", comment="#", dtype=str)
    if df.empty:
        return df
    first = df.iloc[0].astype(str)
    if first.str.fullmatch(r"\d*[sdn]").all():
        df = df.iloc[1:]
    return df.reset_index(drop=True)


def filter_sites(df: pd.DataFrame, query: SiteQuery) -> pd.DataFrame:
    """
    Keep one row per site: the series for `query.parameter_cd` with enough
    observations over a long enough span, best (largest count) row first.
    """
    missing = [c for c in SITE_COLUMNS if c not in df.columns]
    if missing:
        raise SiteServiceError(f"RDB response lacks columns {missing}")

    df = df[SITE_COLUMNS].copy()
    df["count_nu"] = pd.to_numeric(df["count_nu"], errors="coerce")
    df["dec_lat_va"] = pd.to_numeric(df["dec_lat_va"], errors="coerce")
    df["dec_long_va"] = pd.to_numeric(df["dec_long_va"], errors="coerce")
    df["begin_date"] = pd.to_datetime(df["begin_date"], errors="coerce")
    df["end_date"] = pd.to_datetime(df["end_date"], errors="coerce")

    keep = df["parm_cd"] == query.parameter_cd
    if query.data_type:
        keep &= df["data_type_cd"] == query.data_type
    keep &= df["count_nu"] >= query.min_count
    span_days = (df["end_date"] - df["begin_date"]).dt.days
    keep &= span_days >= query.min_years * _DAYS_PER_YEAR
    keep &= df["dec_lat_va"].notna() & df["dec_long_va"].notna()

    out = (
        df[keep]
        .sort_values(["site_no", "count_nu"], ascending=[True, False], kind="stable")
        .drop_duplicates("site_no", keep="first")
        .reset_index(drop=True)
    )
    return out


def _request_rdb(
    jurisdiction: str, query: SiteQuery, session: Optional[requests.Session] = None
) -> Optional[str]:
    """Raw RDB text, or ``None`` when the service reports no matching sites."""
    get = session.get if session is not None else requests.get
    r = get(query.url, params=query.params(jurisdiction), timeout=query.timeout)
    if r.status_code == 404:
        return None
    r.raise_for_status()
    if r.text.lstrip().startswith("<"):
        raise SiteServiceError(f"unexpected HTML/XML reply for {jurisdiction}")
    return r.text


# --------------------------------------------------------------------------- #
# Public API                                                                  #
# --------------------------------------------------------------------------- #
def fetch_jurisdiction(
    jurisdiction: str,
    query: SiteQuery,
    session: Optional[requests.Session] = None,
) -> pd.DataFrame:
    """Filtered sites for one state / territory code (raises on failure)."""
    logger.debug("Querying NWIS sites for %s", jurisdiction)
    text = _request_rdb(jurisdiction, query, session)
    if text is None:
        logger.info("%s: no sites for parameter %s", jurisdiction, query.parameter_cd)
        sites = pd.DataFrame(columns=SITE_COLUMNS)
    else:
        sites = filter_sites(parse_rdb(text), query)
    sites.insert(0, "region_id", jurisdiction.upper())
    return sites


def fetch_sites(
    jurisdictions: Iterable[str],
    query: SiteQuery,
    session: Optional[requests.Session] = None,
) -> BatchResult:
    """
    Best-effort batch: one outcome per jurisdiction, in order.

    A failing jurisdiction is logged and recorded; the batch carries on and
    never raises on its behalf.
    """
    result = BatchResult()
    for code in jurisdictions:
        try:
            data = fetch_jurisdiction(code, query, session)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Site fetch failed for %s – %s", code, exc)
            result.outcomes.append(FetchOutcome(code, error=str(exc) or type(exc).__name__))
            continue
        logger.info("%s: %d sites", code, len(data))
        result.outcomes.append(FetchOutcome(code, data=data))

    if result.failures:
        logger.warning("%d of %d jurisdictions failed: %s",
                       len(result.failures), len(result.outcomes),
                       ", ".join(result.failures))
    return result
