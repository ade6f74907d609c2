"""
Entity id and slug helper tests.
"""

import pytest

from src.domain.ids import (
    create_entity_id,
    create_slug,
    create_unique_slug,
    is_valid_entity_id,
    is_valid_slug,
)


class TestEntityIds:
    def test_default_shape(self) -> None:
        entity_id = create_entity_id()
        assert len(entity_id) == 7
        assert is_valid_entity_id(entity_id)

    def test_custom_alphabet(self) -> None:
        assert set(create_entity_id(12, "ab")) <= {"a", "b"}

    @pytest.mark.parametrize("value", ["ABCDEFG", "abc", "abc-def", 1234567, None])
    def test_invalid_ids(self, value: object) -> None:
        assert is_valid_entity_id(value) is False


class TestSlugs:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Acme Corp", "acme-corp"),
            ("  Hello,  World!  ", "hello-world"),
            ("Already-a-slug", "already-a-slug"),
            ("Ünïcode Name", "n-code-name"),
            ("!!!", ""),
        ],
    )
    def test_create_slug(self, text: str, expected: str) -> None:
        assert create_slug(text) == expected

    def test_max_length(self) -> None:
        assert len(create_slug("a" * 150)) == 100

    def test_unique_slug_suffixes(self) -> None:
        assert create_unique_slug("Acme", []) == "acme"
        assert create_unique_slug("Acme", {"acme", "acme-1"}) == "acme-2"

    @pytest.mark.parametrize(
        ("slug", "valid"),
        [("acme", True), ("acme-2", True), ("Acme", False), ("a b", False), ("", False)],
    )
    def test_is_valid_slug(self, slug: str, valid: bool) -> None:
        assert is_valid_slug(slug) is valid

    def test_custom_pattern(self) -> None:
        assert is_valid_slug("ABC", pattern=r"^[A-Z]+$") is True
