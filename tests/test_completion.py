"""Tests for the completion service boundary helpers."""

import pytest

from todo_kernel.completion.service import decode_arguments


class TestDecodeArguments:
    def test_dict_passes_through(self):
        assert decode_arguments({"a": 1}) == {"a": 1}

    def test_none_is_empty(self):
        assert decode_arguments(None) == {}

    def test_json_text(self):
        assert decode_arguments('{"content": "buy milk"}') == {"content": "buy milk"}
        assert decode_arguments(b'{"id": "x"}') == {"id": "x"}

    @pytest.mark.parametrize("raw", ["{broken", "[1, 2]", "42", 42])
    def test_non_object_rejected(self, raw):
        with pytest.raises(ValueError):
            decode_arguments(raw)
