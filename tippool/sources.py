"""Read time-clock and transaction exports into plain row dicts."""

import io
from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

PathLike = Union[str, Path]

CLOCK_BANNER_ROWS = 2
EXCEL_SUFFIXES = {".xlsx", ".xlsm"}


def preprocess_clock_export(content: str) -> str:
    """
    Drop the two banner rows above the header and the totals row at the end.

    Trailing blank lines are ignored when locating the totals row.
    """
    lines = content.splitlines()
    while lines and not lines[-1].strip():
        lines.pop()
    return "\n".join(lines[CLOCK_BANNER_ROWS:-1])


def frame_to_rows(df: pd.DataFrame) -> List[Dict[str, str]]:
    df = df.copy()
    df.columns = [str(c).strip() for c in df.columns]
    df = df.fillna("").astype(str)
    return df.to_dict(orient="records")


def _read_excel(path: Path, skip_banner: bool) -> pd.DataFrame:
    return pd.read_excel(
        path,
        engine="openpyxl",
        dtype=str,
        skiprows=CLOCK_BANNER_ROWS if skip_banner else 0,
        skipfooter=1 if skip_banner else 0,
    )


def read_clock_rows(path: PathLike, preprocess: bool = True) -> List[Dict[str, str]]:
    """Rows of a time-clock export, keyed by header (CSV or Excel)."""
    path = Path(path)
    if path.suffix.lower() in EXCEL_SUFFIXES:
        return frame_to_rows(_read_excel(path, preprocess))
    content = path.read_text(encoding="utf-8-sig")
    if preprocess:
        content = preprocess_clock_export(content)
    df = pd.read_csv(io.StringIO(content), dtype=str, keep_default_na=False, skipinitialspace=True)
    return frame_to_rows(df)


def read_transaction_rows(path: PathLike) -> List[Dict[str, str]]:
    path = Path(path)
    if path.suffix.lower() in EXCEL_SUFFIXES:
        return frame_to_rows(_read_excel(path, skip_banner=False))
    df = pd.read_csv(path, dtype=str, keep_default_na=False, encoding="utf-8-sig")
    return frame_to_rows(df)
