"""Export of the rows currently rendered in the grid."""

from __future__ import annotations

import re

import pandas as pd

from ui.state.state_contracts import GridSnapshot
from utils.value_formatter import full_value_of


def snapshot_to_dataframe(snapshot: GridSnapshot) -> pd.DataFrame:
    """Visible rows as a DataFrame of full (untruncated) text values."""
    records = [[full_value_of(value) for value in row] for row in snapshot.rows]
    # Ad-hoc results may repeat a column name; keep them apart
    columns = pd.Index(snapshot.column_names)
    if columns.has_duplicates:
        seen: dict[str, int] = {}
        deduped = []
        for name in snapshot.column_names:
            count = seen.get(name, 0)
            deduped.append(name if count == 0 else f"{name}_{count}")
            seen[name] = count + 1
        columns = pd.Index(deduped)
    return pd.DataFrame(records, columns=columns)


def to_csv_bytes(df: pd.DataFrame) -> bytes:
    """CSV with a BOM so spreadsheet tools detect UTF-8."""
    return df.to_csv(index=False).encode("utf-8-sig")


def export_file_name(snapshot: GridSnapshot) -> str:
    base = snapshot.table_name if snapshot.is_browsing and snapshot.table_name else "query_results"
    safe_name = re.sub(r"[^a-zA-Z0-9_\-]+", "_", base)
    if snapshot.is_browsing:
        return f"{safe_name}_page{snapshot.page_number}.csv"
    return f"{safe_name}.csv"
