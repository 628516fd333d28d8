"""
Utilities package - Helper functions and classes for the Pocket ID operator.

Contains:
- pocketid_admin.py: Pocket ID REST API client
- kubernetes.py: Kubernetes API helpers for PocketIDClient resources
- secret_manager.py: Credentials secret rendering and lifecycle
- finalizers.py: Finalizer add/remove
- conditions.py: Status condition ledger
- templates.py: Secret template rendering
- backoff.py: Retry delay policy
- dedup.py: Processed-generation ledger
"""
