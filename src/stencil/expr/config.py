"""
Configuration for TemplateEngine instances.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from .limits import DEFAULT_TEMPLATE_LIMITS, TemplateLimits


class TemplateEngineConfig(BaseModel):
    """Configuration for creating a TemplateEngine."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    # Resource limits - can be dict or TemplateLimits model
    limits: TemplateLimits | dict[str, Any] | None = Field(default=None)

    # Whether render failures are logged before they propagate (default: True)
    log_render_errors: bool = Field(default=True, alias="logRenderErrors")


def normalize_config(
    config: TemplateEngineConfig | dict[str, Any] | None,
) -> TemplateEngineConfig:
    """Normalize configuration into a TemplateEngineConfig with resolved limits."""
    if config is None:
        return TemplateEngineConfig(limits=DEFAULT_TEMPLATE_LIMITS)

    if isinstance(config, TemplateEngineConfig):
        candidate = config
    else:
        candidate = TemplateEngineConfig.model_validate(config)

    return candidate.model_copy(update={"limits": resolve_limits(candidate.limits)})


def resolve_limits(
    limits: Optional[TemplateLimits | dict[str, Any]],
) -> TemplateLimits:
    """Accepts limits as a model, a (camelCase or snake_case) dict, or None."""
    if limits is None:
        return DEFAULT_TEMPLATE_LIMITS
    if isinstance(limits, TemplateLimits):
        return limits
    return TemplateLimits.model_validate(limits)
