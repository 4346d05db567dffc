"""Configuration loader."""

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import ValidationError

from .models import ConfigModel, PipelineConfig


class Config:
    """Configuration manager."""

    def __init__(self, config_path: Optional[Path] = None) -> None:
        """Initialize config manager."""
        if config_path is None:
            config_path = Path.home() / ".config" / "ainews" / "config.yaml"
        self.config_path = config_path
        self._config: Optional[ConfigModel] = None

    @property
    def config(self) -> ConfigModel:
        """Get loaded config."""
        if self._config is None:
            self._config = load_config(self.config_path)
        return self._config

    @property
    def output_dir(self) -> Path:
        """Get output directory path."""
        path = Path(self.config.output_dir).expanduser()
        path.mkdir(parents=True, exist_ok=True)
        return path

    def get_run_dir(self, run_id: str) -> Path:
        """Get run directory path."""
        run_dir = self.output_dir / run_id
        run_dir.mkdir(parents=True, exist_ok=True)
        return run_dir

    def get_pipeline_config(self) -> PipelineConfig:
        """Pipeline config with API keys resolved from the environment."""
        pipeline = self.config.pipeline
        updates = {}

        # Keys in the file win over the environment
        if not pipeline.gemini_api_key and self.config.gemini_api_key_env:
            key = os.environ.get(self.config.gemini_api_key_env)
            if key:
                updates["gemini_api_key"] = key

        if not pipeline.openai_api_key and self.config.openai_api_key_env:
            key = os.environ.get(self.config.openai_api_key_env)
            if key:
                updates["openai_api_key"] = key

        return pipeline.model_copy(update=updates) if updates else pipeline


def load_config(config_path: Path) -> ConfigModel:
    """Load configuration from YAML file."""
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    try:
        with open(config_path) as f:
            config_data = yaml.safe_load(f)

        if config_data is None:
            config_data = {}

        return ConfigModel(**config_data)
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")
    except ValidationError as e:
        raise ValueError(f"Invalid configuration: {e}")


def save_config(config: ConfigModel, config_path: Path) -> None:
    """Save configuration to YAML file."""
    config_path.parent.mkdir(parents=True, exist_ok=True)

    with open(config_path, "w") as f:
        yaml.dump(config.model_dump(), f, default_flow_style=False, sort_keys=False)
