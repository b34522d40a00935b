"""
Secure query building for table browsing.

Turns browsing intent (search text, sort target, page) into a row query and a
matching count query. Values are bound as named parameters and identifiers are
checked against the known schema before being quoted, so the returned
statements never interpolate user text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence

from backend.models import Column, SortSpec

SEARCH_PARAM_NAME = "search"


def quote_identifier(name: str) -> str:
    """Double-quote an identifier, doubling any embedded quotes."""
    if not isinstance(name, str) or not name:
        raise ValueError(f"Invalid identifier: {name!r}")
    if "\x00" in name:
        raise ValueError("Identifier cannot contain NUL characters")
    return '"' + name.replace('"', '""') + '"'


def validate_column_name(name: str, columns: Sequence[Column]) -> str:
    """Return the quoted column name if it belongs to the schema."""
    known = {col.name for col in columns}
    if name not in known:
        raise ValueError(f"Unknown column: {name!r}")
    return quote_identifier(name)


@dataclass(frozen=True)
class BrowseQueries:
    """Row and count statements for one browsing request.

    The clauses are kept separately so callers can inspect how the statement
    was composed; ``params`` holds the bound values for both statements.
    """

    row_query: str
    count_query: str
    params: Dict[str, Any] = field(default_factory=dict)
    where_clause: Optional[str] = None
    order_clause: Optional[str] = None
    limit: int = 0
    offset: int = 0


class SecureQueryBuilder:
    """Secure query builder with parameter binding support."""

    def __init__(self):
        self.params: Dict[str, Any] = {}

    def add_parameter(self, value: Any, param_name: str) -> str:
        """
        Add a parameter and return the parameter placeholder.

        Args:
            value: The parameter value
            param_name: Name referenced in the statement

        Returns:
            Parameter placeholder string (e.g., "$search")
        """
        self.params[param_name] = value
        return f"${param_name}"

    def build_search_filter(self, columns: Sequence[Column], search: str) -> Optional[str]:
        """
        Build the disjunctive substring filter for a search term.

        Every column is cast to text and tested with ``contains``, which is
        case-sensitive and treats ``%`` and ``_`` literally. One parameter is
        shared by all predicates.

        Returns:
            The OR-joined predicate, or None when there is nothing to filter on.
        """
        if not search or not columns:
            return None

        placeholder = self.add_parameter(search, SEARCH_PARAM_NAME)
        predicates = [
            f"contains(CAST({quote_identifier(col.name)} AS VARCHAR), {placeholder})"
            for col in columns
        ]
        return " OR ".join(predicates)

    @staticmethod
    def build_order_clause(sort: Optional[SortSpec], columns: Sequence[Column]) -> Optional[str]:
        """Build the ORDER BY target for the active sort, if any."""
        if sort is None:
            return None
        return f"{validate_column_name(sort.column, columns)} {sort.direction.sql}"

    def build_secure_query(
        self,
        select_clause: str,
        from_clause: str,
        where_conditions: Optional[List[str]] = None,
        order_by: Optional[str] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> str:
        """
        Build a complete secure SQL query.

        Args:
            select_clause: SELECT clause
            from_clause: FROM clause
            where_conditions: List of WHERE conditions, AND-joined
            order_by: ORDER BY clause
            limit: LIMIT value
            offset: OFFSET value

        Returns:
            Complete SQL query string
        """
        query_parts = [
            f"SELECT {select_clause}",
            f"FROM {from_clause}",
        ]

        non_empty_conditions = [cond for cond in (where_conditions or []) if cond and cond.strip()]
        if non_empty_conditions:
            joined = " AND ".join(f"({cond})" for cond in non_empty_conditions)
            query_parts.append(f"WHERE {joined}")

        if order_by:
            query_parts.append(f"ORDER BY {order_by}")

        if limit is not None:
            query_parts.append(f"LIMIT {_non_negative_int(limit, 'limit')}")

        if offset is not None:
            query_parts.append(f"OFFSET {_non_negative_int(offset, 'offset')}")

        return "\n".join(query_parts)

    def get_parameters(self) -> Dict[str, Any]:
        """Get all accumulated parameters."""
        return self.params.copy()


def _non_negative_int(value: Any, label: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{label} must be an integer, got {value!r}")
    if value < 0:
        raise ValueError(f"{label} cannot be negative, got {value}")
    return value


def build_browse_queries(
    table: str,
    columns: Sequence[Column],
    search: str,
    sort: Optional[SortSpec],
    page: int,
    page_size: int,
) -> BrowseQueries:
    """
    Build the row query and the matching count query for one grid page.

    The search filter goes into both statements so the count always matches
    the filtered rows. Ordering and pagination apply to the row query only.
    No tie-break is added to ORDER BY: rows with equal keys come back in the
    engine's natural order.

    Args:
        table: Table name
        columns: Schema columns of the table
        search: Search text; empty means no filter
        sort: Active sort target or None for source order
        page: 1-based page number
        page_size: Rows per page

    Returns:
        BrowseQueries with both statements and their shared parameters

    Raises:
        ValueError: Invalid page values or a sort column outside the schema
    """
    page = _non_negative_int(page, "page")
    page_size = _non_negative_int(page_size, "page_size")
    if page < 1:
        raise ValueError(f"page must be >= 1, got {page}")
    if page_size < 1:
        raise ValueError(f"page_size must be >= 1, got {page_size}")

    builder = SecureQueryBuilder()
    table_ref = quote_identifier(table)
    where_clause = builder.build_search_filter(columns, search)
    order_clause = builder.build_order_clause(sort, columns)
    offset = (page - 1) * page_size
    conditions = [where_clause] if where_clause else None

    row_query = builder.build_secure_query(
        "*",
        table_ref,
        where_conditions=conditions,
        order_by=order_clause,
        limit=page_size,
        offset=offset,
    )
    count_query = builder.build_secure_query(
        "COUNT(*) AS total_rows",
        table_ref,
        where_conditions=conditions,
    )

    return BrowseQueries(
        row_query=row_query,
        count_query=count_query,
        params=builder.get_parameters(),
        where_clause=where_clause,
        order_clause=order_clause,
        limit=page_size,
        offset=offset,
    )
