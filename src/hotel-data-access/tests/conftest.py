"""Shared fixtures for hotel_data_access tests."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any
from unittest.mock import MagicMock

import boto3
import pytest
from hotel_data_access import DynamoEntityClient
from moto import mock_aws

REGION = "eu-west-2"
TABLE_NAME = "hotel-data-test"


@pytest.fixture(autouse=True)
def aws_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set minimal AWS env vars required by the library and moto."""
    monkeypatch.setenv("AWS_REGION", REGION)
    monkeypatch.setenv("AWS_DEFAULT_REGION", REGION)
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.delenv("SECURITY_METRICS_NAMESPACE", raising=False)


@pytest.fixture(autouse=True)
def cloudwatch(monkeypatch: pytest.MonkeyPatch) -> MagicMock:
    """Stand-in for the module-level CloudWatch client; no test talks to AWS."""
    mock_cw = MagicMock()
    monkeypatch.setattr("hotel_data_access.metrics._cloudwatch_client", mock_cw)
    return mock_cw


def create_table(dynamodb: Any) -> None:
    dynamodb.create_table(
        TableName=TABLE_NAME,
        KeySchema=[
            {"AttributeName": "PK", "KeyType": "HASH"},
            {"AttributeName": "SK", "KeyType": "RANGE"},
        ],
        AttributeDefinitions=[
            {"AttributeName": "PK", "AttributeType": "S"},
            {"AttributeName": "SK", "AttributeType": "S"},
        ],
        BillingMode="PAY_PER_REQUEST",
    )


@pytest.fixture
def dynamo() -> Iterator[Any]:
    """A moto DynamoDB resource with the hotel table created."""
    with mock_aws():
        resource = boto3.resource("dynamodb", region_name=REGION)
        create_table(resource)
        yield resource


@pytest.fixture
def store(dynamo: Any) -> DynamoEntityClient:
    return DynamoEntityClient(TABLE_NAME, dynamodb_resource=dynamo)
