"""
Operator error hierarchy with categorization.

This module defines the error types used throughout the Pocket ID operator.
The reconciler treats every failure the same way (record it and schedule a
retry); the category and user action travel with the error into the
structured reconciliation error log.
"""


class OperatorError(Exception):
    """
    Base error class for all operator-related exceptions.

    Provides categorization and user guidance for resolution. The string
    form is the bare message, which is what ends up in status conditions.
    """

    def __init__(
        self,
        message: str,
        category: str,
        user_action: str | None = None,
    ):
        """
        Initialize operator error.

        Args:
            message: Human-readable error description
            category: Error category (validation, external, configuration)
            user_action: What user should do to resolve the issue
        """
        super().__init__(message)
        self.message = message
        self.category = category
        self.user_action = user_action


class ValidationError(OperatorError):
    """Error in resource specification validation."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        action = user_action or "Check resource specification and fix validation errors"
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(message=message, category="validation", user_action=action)
        self.field = field


class ExternalServiceError(OperatorError):
    """Error communicating with external services."""

    def __init__(self, service: str, message: str, user_action: str | None = None):
        action = user_action or f"Check {service} connectivity and credentials"
        super().__init__(
            message=f"{service} error: {message}",
            category="external",
            user_action=action,
        )
        self.service = service


class PocketIDAPIError(ExternalServiceError):
    """Error communicating with the Pocket ID API."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_body: str | None = None,
    ):
        if status_code:
            message = f"HTTP {status_code}: {message}"

        super().__init__(
            service="Pocket ID API",
            message=message,
            user_action="Check Pocket ID availability and POCKETID_API_TOKEN",
        )
        self.status_code = status_code
        self.response_body = response_body

    def body_preview(self, limit: int = 1024) -> str | None:
        """Return a truncated preview of the response body for logging."""
        if self.response_body is None:
            return None

        if len(self.response_body) <= limit:
            return self.response_body

        return f"{self.response_body[:limit]}...<truncated>"


class KubernetesAPIError(ExternalServiceError):
    """Error communicating with Kubernetes API."""

    def __init__(self, message: str, reason: str | None = None):
        if reason:
            message = f"{message} (reason: {reason})"

        super().__init__(
            service="Kubernetes API",
            message=message,
            user_action="Check RBAC permissions and cluster connectivity",
        )
        self.reason = reason


class ConfigurationError(OperatorError):
    """Error in operator or resource configuration."""

    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message=message,
            category="configuration",
            user_action=user_action or "Review and correct configuration",
        )
