"""Property-based tests for workspace name validation and slugs.

Testing Configuration:
- Library: Hypothesis (Python)
- Minimum iterations: 100 per property test
"""

import re
import string

import pytest
from hypothesis import given, settings, strategies as st

from src.provisioning.errors import RequestValidationError
from src.provisioning.validation import (
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    generate_slug,
    resolve_plan,
    validate_workspace_name,
)

NAME_ALPHABET = string.ascii_letters + string.digits + " _-"


@st.composite
def valid_workspace_name(draw):
    return draw(st.text(
        alphabet=st.sampled_from(NAME_ALPHABET),
        min_size=NAME_MIN_LENGTH, max_size=NAME_MAX_LENGTH,
    ))


class TestNameValidation:

    @given(name=valid_workspace_name())
    @settings(max_examples=100)
    def test_valid_names_accepted(self, name):
        assert validate_workspace_name(name) == name

    @given(name=st.text(alphabet=st.sampled_from(NAME_ALPHABET), min_size=1,
                        max_size=NAME_MIN_LENGTH - 1))
    @settings(max_examples=100)
    def test_short_names_rejected(self, name):
        with pytest.raises(RequestValidationError) as exc_info:
            validate_workspace_name(name)
        assert exc_info.value.field == "name"

    @given(name=st.text(alphabet=st.sampled_from(NAME_ALPHABET),
                        min_size=NAME_MAX_LENGTH + 1, max_size=200))
    @settings(max_examples=100)
    def test_long_names_rejected(self, name):
        with pytest.raises(RequestValidationError, match="between"):
            validate_workspace_name(name)

    @given(
        prefix=valid_workspace_name(),
        bad=st.characters().filter(lambda c: c not in NAME_ALPHABET),
    )
    @settings(max_examples=100)
    def test_disallowed_characters_rejected(self, prefix, bad):
        name = (prefix + bad)[-NAME_MAX_LENGTH:]
        with pytest.raises(RequestValidationError) as exc_info:
            validate_workspace_name(name)
        assert exc_info.value.field == "name"

    def test_empty_name_rejected(self):
        with pytest.raises(RequestValidationError, match="required"):
            validate_workspace_name("")

    def test_trailing_newline_rejected(self):
        with pytest.raises(RequestValidationError, match="invalid characters"):
            validate_workspace_name("Acme\n")


class TestSlugGeneration:

    def test_collapses_runs(self):
        assert generate_slug("My  Workspace!!") == "my-workspace"

    def test_trims_hyphens(self):
        assert generate_slug("  --Foo--  ") == "foo"

    def test_underscores_become_hyphens(self):
        assert generate_slug("Acme_Corp 2024") == "acme-corp-2024"

    @given(name=st.text(max_size=100))
    @settings(max_examples=100)
    def test_slug_is_deterministic(self, name):
        assert generate_slug(name) == generate_slug(name)

    @given(name=st.text(max_size=100))
    @settings(max_examples=100)
    def test_slug_shape(self, name):
        slug = generate_slug(name)
        assert re.fullmatch(r"([a-z0-9]+(-[a-z0-9]+)*)?", slug)

    @given(name=valid_workspace_name())
    @settings(max_examples=100)
    def test_slug_is_idempotent(self, name):
        slug = generate_slug(name)
        assert generate_slug(slug) == slug


class TestResolvePlan:

    @pytest.mark.parametrize("plan", [None, ""])
    def test_empty_plan_defaults_to_free(self, plan):
        assert resolve_plan(plan) == "free"

    def test_plan_passed_through(self):
        assert resolve_plan("enterprise") == "enterprise"

    def test_unknown_plan_not_rejected(self):
        assert resolve_plan("gold") == "gold"
