"""Unit tests for pagination helpers (no database)."""

from unittest.mock import patch

import pytest

from modelrepo.core.config import settings
from modelrepo.core.errors import ValidationError
from modelrepo.repos.pagination import Page, build_page, page_offset, resolve_page_params


class TestResolvePageParams:
    def test_defaults(self):
        assert resolve_page_params(1, None) == (1, settings.pagination_default_per_page)

    def test_caps_per_page(self):
        with patch.object(settings, "pagination_max_per_page", 20):
            assert resolve_page_params(2, 500) == (2, 20)

    def test_rejects_zero_page(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_page_params(0, 10)

        assert exc_info.value.details == {"page": 0}

    def test_rejects_zero_per_page(self):
        with pytest.raises(ValidationError) as exc_info:
            resolve_page_params(1, 0)

        assert exc_info.value.details == {"per_page": 0}


class TestBuildPage:
    def test_page_offset(self):
        assert page_offset(1, 15) == 0
        assert page_offset(3, 15) == 30

    def test_exact_multiple(self):
        page = build_page(["c", "d"], total=4, page=2, per_page=2)

        assert page.last_page == 2
        assert page.has_next is False
        assert page.has_prev is True
        assert (page.from_index, page.to_index) == (3, 4)

    def test_rounds_last_page_up(self):
        assert build_page(["a"], total=5, page=1, per_page=2).last_page == 3

    def test_empty(self):
        page = build_page([], total=0, page=1, per_page=15)

        assert page.last_page == 1
        assert page.has_next is False
        assert page.has_prev is False
        assert page.from_index is None

    def test_page_holds_arbitrary_objects(self):
        item = object()

        page = build_page([item], total=1, page=1, per_page=1)

        assert isinstance(page, Page)
        assert page.items[0] is item
        assert len(page) == 1
