"""
Error handling module for the Pocket ID operator.

This module provides the error hierarchy used to categorize reconciliation
failures before they are recorded on the resource status.
"""

from .operator_errors import (
    ConfigurationError,
    ExternalServiceError,
    KubernetesAPIError,
    OperatorError,
    PocketIDAPIError,
    ValidationError,
)

__all__ = [
    "OperatorError",
    "ValidationError",
    "ExternalServiceError",
    "PocketIDAPIError",
    "KubernetesAPIError",
    "ConfigurationError",
]
