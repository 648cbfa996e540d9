# Discord Tracker State Management
"""Pipeline snapshot models and persistence."""

from .models import Step, StepStatus, PipelineContext, PipelineSnapshot
from .manager import StateManager, StateError

__all__ = ["Step", "StepStatus", "PipelineContext", "PipelineSnapshot", "StateManager", "StateError"]
