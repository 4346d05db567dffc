"""Personalized news processing pipeline with multi-signal ranking."""

__version__ = "0.1.0"

from .pipeline import Pipeline, PipelineResult, create_pipeline, process_articles_quick

__all__ = ["Pipeline", "PipelineResult", "create_pipeline", "process_articles_quick", "__version__"]
