"""
Configuration package for the reachat content pipeline
"""

from .pipeline_config import (
    PipelineConfig,
    PipelineConfigManager,
    config_manager,
    get_pipeline_config,
)

__all__ = ["PipelineConfig", "PipelineConfigManager", "config_manager", "get_pipeline_config"]
