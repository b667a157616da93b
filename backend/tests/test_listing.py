"""
Listing/query builder tests.

Verifies:
- page/limit defaults, fallbacks and the limit cap
- sort allow-list and order normalization
- search terms only ever travel as bound parameters
- pagination metadata and next/back links
"""

import pytest
from werkzeug.datastructures import MultiDict

from coffeeshop.exceptions import ValidationError
from coffeeshop.extensions import db
from coffeeshop.listing import (
    ListParams,
    build_list_queries,
    build_pagination,
    escape_like,
    parse_list_params,
)
from coffeeshop.models import User
from coffeeshop.services.user_service import USER_LIST


class TestParseListParams:

    def test_defaults(self):
        params = parse_list_params({}, USER_LIST)
        assert (params.page, params.limit) == (1, 10)
        assert params.sort == "created_at"
        assert params.order == "desc"
        assert params.offset == 0

    @pytest.mark.parametrize("raw_page,raw_limit", [("0", "0"), ("-3", "-1"), ("abc", "x"), ("", "")])
    def test_bad_page_and_limit_fall_back(self, raw_page, raw_limit):
        params = parse_list_params({"page": raw_page, "limit": raw_limit}, USER_LIST)
        assert params.page == 1
        assert params.limit == 10

    def test_limit_is_capped(self):
        params = parse_list_params({"limit": "5000"}, USER_LIST, max_limit=100)
        assert params.limit == 100

    def test_offset_is_page_based(self):
        params = parse_list_params({"page": "3", "limit": "20"}, USER_LIST)
        assert params.offset == 40

    def test_unknown_sort_key_rejected(self):
        with pytest.raises(ValidationError) as exc:
            parse_list_params({"sort": "password"}, USER_LIST)
        assert "sort" in exc.value.errors

    @pytest.mark.parametrize("raw,expected", [("ASC", "asc"), ("desc", "desc"), ("sideways", "desc"), ("", "desc")])
    def test_order_normalized(self, raw, expected):
        assert parse_list_params({"order": raw}, USER_LIST).order == expected


def test_escape_like_escapes_wildcards():
    assert escape_like("50%_off") == "50\\%\\_off"


def test_search_term_is_a_bound_parameter(app, db_session):
    term = "x' OR 1=1 --"
    params = ListParams(search=term, sort="email", order="asc")
    page_query, count_query = build_list_queries(db.session.query(User), USER_LIST, params)

    compiled = page_query.statement.compile()
    assert term not in str(compiled)
    assert any(term in str(v) for v in compiled.params.values())

    # ORDER BY only contains the allow-listed column
    assert "ORDER BY users.email ASC" in str(compiled)

    # Count query is unaffected by ORDER BY / LIMIT
    assert count_query.count() == 0


class TestBuildPagination:

    def test_middle_page_has_both_links(self):
        args = MultiDict({"search": "latte", "page": "2", "limit": "5"})
        pagination, links = build_pagination("/admin/products", 2, 5, 12, args)
        assert pagination == {"page": 2, "limit": 5, "totalItems": 12, "totalPages": 3}
        assert links["next"] == "/admin/products?search=latte&page=3&limit=5"
        assert links["back"] == "/admin/products?search=latte&page=1&limit=5"

    def test_single_page_has_no_links(self):
        pagination, links = build_pagination("/admin/categories", 1, 10, 3)
        assert pagination["totalPages"] == 1
        assert links == {"next": None, "back": None}

    def test_empty_result(self):
        pagination, links = build_pagination("/admin/categories", 1, 10, 0)
        assert pagination["totalPages"] == 0
        assert links["next"] is None
