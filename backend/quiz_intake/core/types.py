"""Type aliases for quiz-intake.

(c) Mike Casale 2025.
Licensed under the MIT License.
See LICENSE file for details.
"""

from __future__ import annotations as _annotations

# =============================================================================
# Section 1: Imports
# =============================================================================
# Standard library (alphabetical)
from typing import Literal

# Third-party (alphabetical)
from typing_extensions import TypeAliasType

# =============================================================================
# Section 2: Module Exports
# =============================================================================
__all__ = (
    "SubmissionId",
    "FieldName",
    "ProfileName",
    "MetricField",
    "ConnectionFailureKind",
    "ErrorCategory",
    "RecoveryStrategy",
)

# =============================================================================
# Section 3: Type Aliases
# =============================================================================
type SubmissionId = str
type FieldName = str

ProfileName = TypeAliasType("ProfileName", Literal["A", "B"])
MetricField = TypeAliasType("MetricField", Literal["score", "completionTime"])

ConnectionFailureKind = TypeAliasType(
    "ConnectionFailureKind",
    Literal["authentication", "network", "timeout"],
)
ErrorCategory = TypeAliasType(
    "ErrorCategory",
    Literal["transient", "recoverable", "fatal"],
)
RecoveryStrategy = TypeAliasType(
    "RecoveryStrategy",
    Literal["retry", "reject", "abort"],
)
