"""Tests for page script construction."""

import json

from hypothesis import given, settings
from hypothesis import strategies as st

from rebootbot.browser import scripts


class TestCall:
    def test_no_arguments(self):
        assert scripts.call(scripts.LOCATION_HREF) == f"({scripts.LOCATION_HREF})()"

    def test_arguments_are_json_encoded(self):
        expression = scripts.call(scripts.FILL_INPUT, 'input[name="email"]', "o'brien@example.com")
        assert expression.endswith('("input[name=\\"email\\"]", "o\'brien@example.com")')

    @settings(max_examples=100)
    @given(value=st.text())
    def test_hostile_values_cannot_escape_the_argument_list(self, value):
        """Property: the source is untouched and the arguments decode back exactly."""
        expression = scripts.call(scripts.FILL_INPUT, "#password", value)
        prefix = f"({scripts.FILL_INPUT})("

        assert expression.startswith(prefix)
        assert json.loads("[" + expression[len(prefix) : -1] + "]") == ["#password", value]

    def test_scripts_do_not_embed_placeholders(self):
        for source in (
            scripts.FILL_INPUT,
            scripts.CLICK,
            scripts.INJECT_FILE_FROM_URL,
            scripts.COLLECT_SESSION_ROWS,
        ):
            assert "{" not in source.split("=>", 1)[0]
            assert "%s" not in source
