# =============================================================================
# tests/test_paging.py - Paging Contract Tests
# =============================================================================

import pytest
from pydantic import ValidationError
from sqlalchemy import Column, Integer, MetaData, Table, select

from core.models import MAX_PAGE_SIZE, Page, Pageable, PageParams, apply_paging

items = Table("items", MetaData(), Column("id", Integer, primary_key=True))


class TestPageParams:
    """Query parameters for a page."""

    def test_defaults(self):
        params = PageParams()

        assert params.page == 1
        assert params.page_size == 20
        assert params.offset == 0

    def test_offset(self):
        assert PageParams(page=3, page_size=10).offset == 20

    @pytest.mark.parametrize("values", [{"page": 0}, {"page_size": 0}, {"page_size": MAX_PAGE_SIZE + 1}])
    def test_out_of_range(self, values):
        with pytest.raises(ValidationError):
            PageParams(**values)

    def test_is_pageable(self):
        assert isinstance(PageParams(), Pageable)


class TestPage:
    """Response envelope."""

    def test_create(self):
        page = Page[int].create([1, 2, 3], PageParams(page=2, page_size=3), total=7)

        assert page.model_dump() == {
            "items": [1, 2, 3],
            "page": 2,
            "page_size": 3,
            "total": 7,
            "total_pages": 3,
        }

    def test_empty(self):
        page = Page[int].create([], PageParams(), total=0)

        assert page.total_pages == 0


class TestApplyPaging:
    """OFFSET / LIMIT on a select."""

    def test_limit_offset(self):
        statement = apply_paging(select(items), PageParams(page=2, page_size=25))

        sql = str(statement.compile(compile_kwargs={"literal_binds": True}))
        assert "LIMIT 25" in sql
        assert "OFFSET 25" in sql

    def test_first_page(self):
        statement = apply_paging(select(items), PageParams(page=1, page_size=10))

        sql = str(statement.compile(compile_kwargs={"literal_binds": True}))
        assert "LIMIT 10" in sql
