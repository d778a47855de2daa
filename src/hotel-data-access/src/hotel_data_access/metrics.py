"""
hotel_data_access.metrics — CloudWatch security metrics.

Count metrics for tenancy events worth alarming on. Emission is
best-effort: a CloudWatch failure is logged and never masks the event
that triggered it.
"""

from __future__ import annotations

import os
from typing import Any

import boto3
from aws_lambda_powertools import Logger

logger = Logger(service="hotel-data-access")

_NAMESPACE_ENV = "SECURITY_METRICS_NAMESPACE"
_DEFAULT_NAMESPACE = "hotelops/security"

TENANCY_RESOLUTION_FAILURE = "TenancyResolutionFailure"
TENANT_OVERRIDE_ATTEMPT = "TenantOverrideAttempt"

# Global client — connection reuse across warm starts
_cloudwatch_client: Any = None


def get_cloudwatch() -> Any:
    """Lazy initialization of the CloudWatch client."""
    global _cloudwatch_client
    if _cloudwatch_client is None:
        region = os.environ.get("AWS_REGION", "eu-west-2")
        _cloudwatch_client = boto3.client("cloudwatch", region_name=region)
    return _cloudwatch_client


def metrics_namespace() -> str:
    return os.environ.get(_NAMESPACE_ENV) or _DEFAULT_NAMESPACE


def emit_security_metric(
    metric_name: str,
    dimensions: dict[str, str],
    *,
    cloudwatch_client: Any = None,
) -> None:
    """Publish a count of 1 for metric_name.

    Never raises. Logs at ERROR level if emission fails.
    """
    try:
        client = cloudwatch_client or get_cloudwatch()
        client.put_metric_data(
            Namespace=metrics_namespace(),
            MetricData=[
                {
                    "MetricName": metric_name,
                    "Value": 1,
                    "Unit": "Count",
                    "Dimensions": [
                        {"Name": name, "Value": value} for name, value in dimensions.items()
                    ],
                }
            ],
        )
    except Exception:
        logger.exception(
            "Failed to emit security metric",
            metric_name=metric_name,
            **dimensions,
        )
