#!/usr/bin/env python3
"""
Query Builder Utilities for the record store gateway.

Both store implementations accept the same filter/order vocabulary:

    filters = {"account_id": "a1", "start_date__gt": "2025-03-31", "email__isnull": False}
    order = ["-assigned_date", "id"]

Supported operators: eq (default), ne, gt, gte, lt, lte, in, isnull.
"""

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

OPERATORS = {"eq", "ne", "gt", "gte", "lt", "lte", "in", "isnull"}

_SQL_OPERATORS = {
    "eq": "=",
    "ne": "!=",
    "gt": ">",
    "gte": ">=",
    "lt": "<",
    "lte": "<=",
}


def check_identifier(name: str) -> str:
    """Reject anything that is not a plain column/table name."""
    if not _IDENTIFIER.match(name):
        raise ValueError(f"Invalid identifier: {name!r}")
    return name


def split_filter_key(key: str) -> Tuple[str, str]:
    """
    Split a filter key into (column, operator).

    Examples:
        >>> split_filter_key("start_date__gt")
        ('start_date', 'gt')
        >>> split_filter_key("account_id")
        ('account_id', 'eq')
    """
    column, sep, op = key.rpartition("__")
    if not sep:
        column, op = key, "eq"
    if op not in OPERATORS:
        raise ValueError(f"Unsupported filter operator '{op}' in '{key}'")
    return check_identifier(column), op


def split_order_key(key: str) -> Tuple[str, bool]:
    """Return (column, descending) for an order key such as '-assigned_date'."""
    descending = key.startswith("-")
    return check_identifier(key.lstrip("-")), descending


class FilterQueryBuilder:
    """
    Builds SQLite WHERE / ORDER BY / LIMIT fragments from the filter vocabulary.
    """

    @staticmethod
    def build_where(filters: Optional[Dict[str, Any]]) -> Tuple[str, List[Any]]:
        """
        Build a WHERE clause and its parameters.

        Examples:
            >>> FilterQueryBuilder.build_where({"is_active": True})
            (' WHERE is_active = ?', [True])
            >>> FilterQueryBuilder.build_where({"id__in": []})
            (' WHERE 1 = 0', [])
        """
        if not filters:
            return "", []

        conditions: List[str] = []
        params: List[Any] = []
        for key, value in filters.items():
            column, op = split_filter_key(key)
            if op == "isnull":
                conditions.append(f"{column} IS NULL" if value else f"{column} IS NOT NULL")
            elif op == "in":
                values = list(value)
                if not values:
                    conditions.append("1 = 0")
                    continue
                placeholders = ", ".join("?" for _ in values)
                conditions.append(f"{column} IN ({placeholders})")
                params.extend(values)
            elif value is None and op in ("eq", "ne"):
                conditions.append(f"{column} IS NULL" if op == "eq" else f"{column} IS NOT NULL")
            else:
                conditions.append(f"{column} {_SQL_OPERATORS[op]} ?")
                params.append(value)

        return " WHERE " + " AND ".join(conditions), params

    @staticmethod
    def build_order(order: Optional[Sequence[str]]) -> str:
        """
        Examples:
            >>> FilterQueryBuilder.build_order(["-assigned_date", "id"])
            ' ORDER BY assigned_date DESC, id ASC'
        """
        if not order:
            return ""
        parts = []
        for key in order:
            column, descending = split_order_key(key)
            parts.append(f"{column} {'DESC' if descending else 'ASC'}")
        return " ORDER BY " + ", ".join(parts)

    @staticmethod
    def build_limit(limit: Optional[int]) -> Tuple[str, List[Any]]:
        if limit is None:
            return "", []
        return " LIMIT ?", [int(limit)]


class PostgrestQueryBuilder:
    """
    Translates the filter vocabulary into PostgREST query parameters.
    """

    @staticmethod
    def _literal(value: Any) -> str:
        if isinstance(value, bool):
            return "true" if value else "false"
        if value is None:
            return "null"
        return str(value)

    @staticmethod
    def build_params(
        filters: Optional[Dict[str, Any]] = None,
        order: Optional[Sequence[str]] = None,
        limit: Optional[int] = None,
        select: str = "*",
    ) -> List[Tuple[str, str]]:
        """
        Build a list of query parameters (repeatable keys allowed).

        Examples:
            >>> PostgrestQueryBuilder.build_params({"start_date__gt": "2025-03-31"}, ["start_date"], 1)
            [('select', '*'), ('start_date', 'gt.2025-03-31'), ('order', 'start_date.asc'), ('limit', '1')]
        """
        params: List[Tuple[str, str]] = []
        if select is not None:
            params.append(("select", select))
        params.extend(PostgrestQueryBuilder.build_filter_params(filters))
        if order:
            parts = []
            for key in order:
                column, descending = split_order_key(key)
                parts.append(f"{column}.{'desc' if descending else 'asc'}")
            params.append(("order", ",".join(parts)))
        if limit is not None:
            params.append(("limit", str(int(limit))))
        return params

    @staticmethod
    def build_filter_params(filters: Optional[Dict[str, Any]]) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        for key, value in (filters or {}).items():
            column, op = split_filter_key(key)
            if op == "isnull":
                params.append((column, "is.null" if value else "not.is.null"))
            elif op == "in":
                joined = ",".join(PostgrestQueryBuilder._literal(v) for v in value)
                params.append((column, f"in.({joined})"))
            elif value is None and op in ("eq", "ne"):
                params.append((column, "is.null" if op == "eq" else "not.is.null"))
            else:
                params.append((column, f"{op}.{PostgrestQueryBuilder._literal(value)}"))
        return params
