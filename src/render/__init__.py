"""Render module for LTC projection output display."""

from render.renderers import (
    BaseRenderer,
    SummaryRenderer,
    ProjectionRenderer,
    CashFlowRenderer,
    PolicyRenderer,
    LTCRenderer,
    HouseholdRenderer,
    LegacyRenderer,
    TaxEfficiencyRenderer,
    CustomRenderer,
    create_custom_renderer,
    load_custom_renderers,
    create_custom_renderer_from_config,
    get_custom_renderer_factory,
    parse_age_range,
    RENDERER_REGISTRY,
    CUSTOM_CONFIG_PATH,
)

__all__ = [
    'BaseRenderer',
    'SummaryRenderer',
    'ProjectionRenderer',
    'CashFlowRenderer',
    'PolicyRenderer',
    'LTCRenderer',
    'HouseholdRenderer',
    'LegacyRenderer',
    'TaxEfficiencyRenderer',
    'CustomRenderer',
    'create_custom_renderer',
    'load_custom_renderers',
    'create_custom_renderer_from_config',
    'get_custom_renderer_factory',
    'parse_age_range',
    'RENDERER_REGISTRY',
    'CUSTOM_CONFIG_PATH',
]
