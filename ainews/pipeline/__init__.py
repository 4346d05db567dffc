"""Pipeline orchestration."""

from .executor import Deadline, StageExecutor
from .models import (
    Fallback,
    PipelineError,
    PipelineResult,
    StageName,
    StageReport,
    Success,
)
from .orchestrator import (
    Pipeline,
    create_pipeline,
    print_pipeline_summary,
    process_articles_quick,
    save_pipeline_result,
)

__all__ = [
    "Pipeline",
    "PipelineResult",
    "PipelineError",
    "StageName",
    "StageReport",
    "StageExecutor",
    "Deadline",
    "Success",
    "Fallback",
    "create_pipeline",
    "process_articles_quick",
    "print_pipeline_summary",
    "save_pipeline_result",
]
