"""
Tests for limits and engine configuration.
"""

import pytest
from pydantic import ValidationError

from stencil.expr import (
    DEFAULT_TEMPLATE_LIMITS,
    LimitExceededError,
    TemplateEngine,
    TemplateEngineConfig,
    TemplateLimits,
    normalize_config,
    resolve_limits,
)


class TestTemplateLimits:
    """Tests for the TemplateLimits model."""

    def test_defaults(self):
        limits = TemplateLimits()
        assert limits.max_expression_length == 2000
        assert limits.max_expression_depth == 32
        assert limits.max_nesting_depth == 10
        assert limits.max_loop_iterations == 1000
        assert limits.max_function_call_depth == 5
        assert limits.max_output_size == 1_048_576

    def test_camel_case_aliases(self):
        limits = TemplateLimits.model_validate({"maxLoopIterations": 50, "maxOutputSize": 64})
        assert limits.max_loop_iterations == 50
        assert limits.max_output_size == 64

    def test_snake_case_names(self):
        assert TemplateLimits(max_nesting_depth=3).max_nesting_depth == 3

    def test_frozen(self):
        with pytest.raises(ValidationError):
            DEFAULT_TEMPLATE_LIMITS.max_loop_iterations = 5

    @pytest.mark.parametrize("value", [0, -1])
    def test_rejects_non_positive(self, value):
        with pytest.raises(ValidationError):
            TemplateLimits(max_loop_iterations=value)

    def test_rejects_unknown_fields(self):
        with pytest.raises(ValidationError):
            TemplateLimits.model_validate({"maxWidgets": 1})


class TestEngineConfig:
    """Tests for TemplateEngineConfig and normalization."""

    def test_normalize_none(self):
        config = normalize_config(None)
        assert config.limits == DEFAULT_TEMPLATE_LIMITS
        assert config.log_render_errors is True

    def test_normalize_dict(self):
        config = normalize_config(
            {"limits": {"maxLoopIterations": 10}, "logRenderErrors": False}
        )
        assert isinstance(config.limits, TemplateLimits)
        assert config.limits.max_loop_iterations == 10
        assert config.log_render_errors is False

    def test_normalize_model(self):
        limits = TemplateLimits(max_output_size=100)
        config = normalize_config(TemplateEngineConfig(limits=limits))
        assert config.limits == limits

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            normalize_config({"cache": True})

    def test_rejects_invalid_limit_values(self):
        with pytest.raises(ValidationError):
            normalize_config({"limits": {"maxNestingDepth": 0}})

    def test_resolve_limits(self):
        assert resolve_limits(None) is DEFAULT_TEMPLATE_LIMITS
        assert resolve_limits({"max_function_call_depth": 2}).max_function_call_depth == 2


class TestFromConfig:
    """Tests for building engines from configuration."""

    def test_from_dict(self):
        engine = TemplateEngine.from_config({"limits": {"maxLoopIterations": 3}})
        assert engine.limits.max_loop_iterations == 3

    def test_from_none(self):
        assert TemplateEngine.from_config(None).limits == DEFAULT_TEMPLATE_LIMITS

    def test_limits_apply_to_render(self):
        engine = TemplateEngine.from_config({"limits": {"maxOutputSize": 2}})
        assert engine.render("ab", {}) == "ab"
        with pytest.raises(LimitExceededError, match="output_size"):
            engine.render("abc", {})
