"""Tests for canonical JSON rendering."""

import math

import pytest
from hypothesis import given
from hypothesis import strategies as st

from querytrace.core.canonical import canonical_json

json_documents = st.recursive(
    st.none() | st.booleans() | st.integers(min_value=-(2**53) + 1, max_value=2**53 - 1) | st.text(),
    lambda children: st.lists(children, max_size=4) | st.dictionaries(st.text(), children, max_size=4),
    max_leaves=20,
)


class TestCanonicalJson:
    def test_keys_sorted_without_whitespace(self) -> None:
        assert canonical_json({"b": 1, "a": [True, None]}) == '{"a":[true,null],"b":1}'

    def test_key_order_does_not_matter(self) -> None:
        assert canonical_json({"source": "A", "type": "integer"}) == canonical_json({"type": "integer", "source": "A"})

    @pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
    def test_non_finite_rejected(self, value: float) -> None:
        with pytest.raises(ValueError, match="non-finite"):
            canonical_json({"nested": [value]})

    @given(document=json_documents)
    def test_deterministic(self, document: object) -> None:
        assert canonical_json(document) == canonical_json(document)
