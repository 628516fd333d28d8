"""
Pocket ID Operator - A Kubernetes operator for Pocket ID OIDC clients.

This operator keeps OIDC clients in a Pocket ID server in sync with
PocketIDClient custom resources:
- Declarative client creation, update and removal
- Client credentials materialized as owned Kubernetes secrets
- Finalizer-guarded cleanup of the external client
- Exponential backoff for failed reconciliations
"""

__version__ = "0.1.0"
