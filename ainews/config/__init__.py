"""Configuration management for the news pipeline."""

from .loader import Config, load_config, save_config
from .models import AIGateConfig, ConfigModel, PipelineConfig, RankingWeights

__all__ = [
    "Config",
    "ConfigModel",
    "PipelineConfig",
    "RankingWeights",
    "AIGateConfig",
    "load_config",
    "save_config",
]
