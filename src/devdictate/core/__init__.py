# Core module - Business logic

"""
Core functionality for the correction pipeline.
Contains settings, session state and the transcript processors.
"""

from .settings import Settings, SettingsSessionState, get_settings
from .transcript_processor import CorrectionPipeline, CorrectionResult, create_pipeline

__all__ = [
    "Settings",
    "SettingsSessionState",
    "get_settings",
    "CorrectionPipeline",
    "CorrectionResult",
    "create_pipeline",
]
