"""
Tests for slug generation helpers
"""

import re

import pytest

from app.utils.slug import create_slug_from_names, remove_diacritics, slugify


def test_remove_diacritics():
    assert remove_diacritics("Nguyễn Đức Thắng") == "Nguyen Duc Thang"
    assert remove_diacritics("Søren Łukasz") == "Soren Lukasz"


def test_slugify():
    assert slugify("  Mary  Anne O'Neil ") == "mary-anne-oneil"
    assert slugify("Trần--Thị") == "tran-thi"


def test_create_slug_with_suffix():
    assert create_slug_from_names("Hoa", "Minh", suffix="x1y2z") == "hoa-minh-x1y2z"


def test_create_slug_random_suffix():
    slug = create_slug_from_names("Anna", "Minh")
    assert re.fullmatch(r"anna-minh-[a-z0-9]{5}", slug)


def test_create_slug_requires_both_names():
    with pytest.raises(ValueError):
        create_slug_from_names("Anna", "")
