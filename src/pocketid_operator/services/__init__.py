"""
Service layer for the Pocket ID operator.

This module provides reconciler services that handle the business logic
for managing PocketIDClient resources, separated from the kopf handler layer.
"""

from .base_reconciler import BaseReconciler, StatusRecorder
from .client_reconciler import PocketIDClientReconciler

__all__ = [
    "BaseReconciler",
    "PocketIDClientReconciler",
    "StatusRecorder",
]
