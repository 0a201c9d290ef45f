"""Tests for the filter vocabulary translators."""

import pytest

from promotrack.utils.query_builders import (
    FilterQueryBuilder,
    PostgrestQueryBuilder,
    split_filter_key,
)


class TestSplitFilterKey:

    def test_default_operator(self):
        assert split_filter_key("account_id") == ("account_id", "eq")

    def test_explicit_operator(self):
        assert split_filter_key("start_date__gte") == ("start_date", "gte")

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            split_filter_key("name__like")

    def test_injection_rejected(self):
        with pytest.raises(ValueError):
            split_filter_key("id; DROP TABLE accounts")


class TestFilterQueryBuilder:

    def test_combined_where(self):
        where, params = FilterQueryBuilder.build_where({
            "account_id": "a1",
            "units_sold__gt": 5,
            "notes__isnull": True,
            "promo_id__in": ["p1", "p2"],
        })
        assert where == (
            " WHERE account_id = ? AND units_sold > ? AND notes IS NULL AND promo_id IN (?, ?)"
        )
        assert params == ["a1", 5, "p1", "p2"]

    def test_none_value_becomes_is_null(self):
        assert FilterQueryBuilder.build_where({"email": None}) == (" WHERE email IS NULL", [])
        assert FilterQueryBuilder.build_where({"email__ne": None}) == (" WHERE email IS NOT NULL", [])

    def test_no_filters(self):
        assert FilterQueryBuilder.build_where(None) == ("", [])

    def test_order_and_limit(self):
        assert FilterQueryBuilder.build_order(["-assigned_date", "id"]) == (
            " ORDER BY assigned_date DESC, id ASC"
        )
        assert FilterQueryBuilder.build_limit(1) == (" LIMIT ?", [1])
        assert FilterQueryBuilder.build_limit(None) == ("", [])


class TestPostgrestQueryBuilder:

    def test_full_params(self):
        params = PostgrestQueryBuilder.build_params(
            {"start_date__gt": "2026-03-31", "is_active": True},
            ["start_date"],
            1,
        )
        assert params == [
            ("select", "*"),
            ("start_date", "gt.2026-03-31"),
            ("is_active", "eq.true"),
            ("order", "start_date.asc"),
            ("limit", "1"),
        ]

    def test_in_and_isnull(self):
        params = PostgrestQueryBuilder.build_filter_params({
            "id__in": ["a", "b"],
            "email__isnull": False,
        })
        assert params == [("id", "in.(a,b)"), ("email", "not.is.null")]

    def test_descending_order(self):
        params = PostgrestQueryBuilder.build_params(order=["-assigned_date", "-id"])
        assert ("order", "assigned_date.desc,id.desc") in params
