#!/usr/bin/env python3
"""
Pocket ID Operator - Main entry point for the kopf-based Pocket ID operator.

The operator keeps OIDC clients in a Pocket ID server in sync with
PocketIDClient resources and stores the client credentials in Kubernetes
secrets.

Usage:
    python -m pocketid_operator.operator
    # Or with kopf directly:
    kopf run -m pocketid_operator.operator --all-namespaces

Environment Variables:
    POCKETID_OPERATOR_NAMESPACES: Comma-separated list of namespaces to watch
    POCKETID_API_URL: Base URL of the Pocket ID server
    POCKETID_API_TOKEN: Pocket ID API key
    LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR)
"""

import logging
import sys

import kopf

# Import handler modules to register them with kopf
from pocketid_operator.handlers import client as client_handler  # noqa: F401
from pocketid_operator.crd import register_crd
from pocketid_operator.observability.logging import setup_structured_logging
from pocketid_operator.observability.metrics import MetricsServer
from pocketid_operator.services import PocketIDClientReconciler
from pocketid_operator.settings import get_pocketid_settings
from pocketid_operator.settings import settings as operator_settings
from pocketid_operator.utils.kubernetes import (
    PocketIDClientResourceAPI,
    get_kubernetes_client,
)
from pocketid_operator.utils.secret_manager import ClientSecretManager

# Global reference to metrics server for cleanup
_global_metrics_server: MetricsServer | None = None


def configure_logging() -> None:
    """Configure structured logging for the operator based on operator_settings."""
    setup_structured_logging(
        log_level=operator_settings.log_level.upper(),
        enable_json_formatting=operator_settings.json_logs,
        correlation_id_enabled=operator_settings.correlation_ids,
    )


def get_watched_namespaces() -> list[str] | None:
    """
    Get the list of namespaces to watch from operator_settings.

    Returns:
        List of namespace names, or None to watch all namespaces
    """
    return operator_settings.watched_namespaces


@kopf.on.startup()
async def startup_handler(
    settings: kopf.OperatorSettings, memo: kopf.Memo, **_
) -> None:
    """
    Operator startup configuration.

    Loads the Kubernetes configuration, applies the CRD when enabled, starts
    the metrics server and creates the shared reconciler.
    """
    logging.info("Starting Pocket ID Operator...")
    settings.watching.reconnect_backoff = 1.0
    settings.execution.max_workers = 20

    watched_namespaces = get_watched_namespaces()
    if watched_namespaces:
        logging.info(f"Watching namespaces: {', '.join(watched_namespaces)}")
    else:
        logging.info("Watching all namespaces (cluster-wide mode)")

    k8s_client = get_kubernetes_client()

    if operator_settings.register_crd:
        register_crd(k8s_client)

    if not get_pocketid_settings().api_token.strip():
        # Not fatal: every reconciliation records the missing token on the resource
        logging.warning("POCKETID_API_TOKEN is not set; reconciliations will fail")

    memo.reconciler = PocketIDClientReconciler(
        resource_api=PocketIDClientResourceAPI(k8s_client),
        secret_manager=ClientSecretManager(k8s_client),
    )

    # Start metrics server for Prometheus scraping and health checks
    try:
        metrics_server = MetricsServer(
            port=operator_settings.metrics_port, host=operator_settings.metrics_host
        )
        await metrics_server.start()
        metrics_server.ready = True

        global _global_metrics_server
        _global_metrics_server = metrics_server

    except Exception as e:
        logging.error(f"Failed to start metrics server: {e}")
        # Don't fail operator startup if metrics server fails
        logging.warning("Continuing without metrics server")


@kopf.on.cleanup()
async def cleanup_handler(**_) -> None:
    """Operator cleanup handler: stops the metrics server."""
    logging.info("Shutting down Pocket ID Operator...")

    global _global_metrics_server
    if _global_metrics_server:
        try:
            await _global_metrics_server.stop()
        except Exception as e:
            logging.error(f"Error stopping metrics server: {e}")
        _global_metrics_server = None


def main() -> None:
    """
    Main entry point for the operator.

    Configures logging, determines the namespace scope and runs kopf.
    """
    configure_logging()

    watched_namespaces = get_watched_namespaces()

    try:
        if watched_namespaces:
            kopf.run(namespaces=watched_namespaces)
        else:
            kopf.run(clusterwide=True)
    except KeyboardInterrupt:
        logging.info("Received shutdown signal")
        sys.exit(0)
    except Exception as e:
        logging.error(f"Operator failed with error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
