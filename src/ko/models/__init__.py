"""Data models for ko."""

from ko.models.config import SessionConfig, Settings
from ko.models.layout import LayoutStep, PaneLayoutPlan, PaneOperation

__all__ = ["LayoutStep", "PaneLayoutPlan", "PaneOperation", "SessionConfig", "Settings"]
