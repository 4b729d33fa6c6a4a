"""Infrastructure concerns for quiz-intake.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Local imports (core first, then alphabetical)
from .instrumentation import Metrics, configure_instrumentation, traced
from .logging import get_logger

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "configure_instrumentation",
    "get_logger",
    "traced",
    "Metrics",
)
