"""
Video Dataset Capture - Validation Utilities

Structured error reporting shared by the capture, annotation and export
operations. Per-item failures that the pipeline absorbs are recorded as
PipelineError entries so callers can see exactly what was skipped.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from colorama import Fore, Style


class ErrorSeverity(Enum):
    """Severity levels for pipeline errors."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


@dataclass
class PipelineError:
    """
    Structured error for pipeline operations.

    Attributes:
        message: Error description
        severity: Error severity level
        source: Component that raised the error
        details: Additional details or context
        item: The skipped item (frame index, file name, dataset name)
    """

    message: str
    severity: ErrorSeverity = ErrorSeverity.ERROR
    source: str = ""
    details: Optional[str] = None
    item: Optional[str] = None

    @classmethod
    def from_exception(
        cls,
        error: Exception,
        source: str = "",
        item: Optional[object] = None,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
    ) -> "PipelineError":
        """Build a skipped-item record from an absorbed exception."""
        return cls(
            message=str(error),
            severity=severity,
            source=source,
            details=type(error).__name__,
            item=None if item is None else str(item),
        )

    def format(self, use_color: bool = True) -> str:
        """
        Format error message with optional color.

        Args:
            use_color: If True, add ANSI color codes

        Returns:
            Formatted error string
        """
        prefix_map = {
            ErrorSeverity.INFO: (Fore.BLUE, "[INFO]"),
            ErrorSeverity.WARNING: (Fore.YELLOW, "[WARNING]"),
            ErrorSeverity.ERROR: (Fore.RED, "[ERROR]"),
            ErrorSeverity.CRITICAL: (Fore.RED + Style.BRIGHT, "[CRITICAL]"),
        }

        color, prefix = prefix_map.get(self.severity, (Fore.WHITE, "[UNKNOWN]"))

        source_str = f" ({self.source})" if self.source else ""
        item_str = f" [{self.item}]" if self.item is not None else ""
        details_str = f"\n  Details: {self.details}" if self.details else ""

        if use_color:
            return f"{color}{prefix}{Style.RESET_ALL}{source_str}{item_str}: {self.message}{details_str}"
        else:
            return f"{prefix}{source_str}{item_str}: {self.message}{details_str}"


@dataclass
class ValidationResult:
    """
    Result of a validation operation.

    Provides a consistent interface for reporting validation outcomes
    with both errors and warnings.
    """

    is_valid: bool = True
    errors: List[PipelineError] = field(default_factory=list)
    warnings: List[PipelineError] = field(default_factory=list)

    def add_error(
        self,
        message: str,
        source: str = "",
        details: Optional[str] = None,
        item: Optional[str] = None,
    ) -> None:
        """Add an error and mark result as invalid."""
        self.is_valid = False
        self.errors.append(
            PipelineError(message, ErrorSeverity.ERROR, source, details, item)
        )

    def add_warning(
        self,
        message: str,
        source: str = "",
        details: Optional[str] = None,
        item: Optional[str] = None,
    ) -> None:
        """Add a warning (does not affect validity)."""
        self.warnings.append(
            PipelineError(message, ErrorSeverity.WARNING, source, details, item)
        )

    def format_all(self, use_color: bool = True) -> str:
        """
        Format all errors and warnings.

        Args:
            use_color: If True, add ANSI color codes

        Returns:
            Formatted string with all messages
        """
        lines = []
        for error in self.errors:
            lines.append(error.format(use_color))
        for warning in self.warnings:
            lines.append(warning.format(use_color))
        return "\n".join(lines)
