"""HTTP API for quiz-intake."""
from __future__ import annotations

from .app import create_app, get_service
from .cors import OriginPolicy

__all__ = ['create_app', 'get_service', 'OriginPolicy']
