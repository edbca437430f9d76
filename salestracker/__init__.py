"""Persistence and analytics core for a small multi-store retail business."""

__version__ = "0.1.0"
