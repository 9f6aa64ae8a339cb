"""
Shared fixtures.

- aws_env: fake credentials/region and a clean settings environment (autouse)
- settings: DeploymentSettings for the reference deployment, no backoff delay
- secret_value / secrets_client / glue_client: mocked AWS collaborators
"""

import json
from unittest.mock import MagicMock

import pytest
from botocore.exceptions import ClientError

from crawlerconf.settings import DeploymentSettings, load_settings

SECRET_ARN = "arn:aws:secretsmanager:us-east-1:123456789012:secret:DBSecretD58955BC-Aarz2ser4gmV"
ROLE_ARN = "arn:aws:iam::123456789012:role/GlueCrawlerRole"
VERSION_ID = "EXAMPLE1-90ab-cdef-fedc-ba987SECRET1"

SETTINGS_ENV = [name.upper() for name in DeploymentSettings.model_fields]


def client_error(code: str, message: str = "", operation: str = "Operation", status: int = 400) -> ClientError:
    return ClientError(
        {"Error": {"Code": code, "Message": message}, "ResponseMetadata": {"HTTPStatusCode": status}},
        operation,
    )


@pytest.fixture(autouse=True)
def aws_env(monkeypatch):
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    for name in SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings() -> DeploymentSettings:
    return load_settings(secret_arn=SECRET_ARN, crawler_role_arn=ROLE_ARN, base_delay=0, max_delay=0)


@pytest.fixture
def secret_value() -> dict:
    return {
        "host": "db.example.com",
        "port": "5432",
        "dbname": "my_initial_database",
        "username": "admin",
        "password": "secret",
    }


def secrets_returning(value) -> MagicMock:
    client = MagicMock()
    client.get_secret_value.return_value = {
        "ARN": SECRET_ARN,
        "Name": "DBSecretD58955BC-Aarz2ser4gmV",
        "VersionId": VERSION_ID,
        "SecretString": value if isinstance(value, str) else json.dumps(value),
    }
    return client


@pytest.fixture
def secrets_client(secret_value) -> MagicMock:
    return secrets_returning(secret_value)


@pytest.fixture
def glue_client() -> MagicMock:
    client = MagicMock()
    client.get_crawler.return_value = {"Crawler": {"Name": "pocGlueCrawler"}}
    client.update_crawler.return_value = {"ResponseMetadata": {"RequestId": "req-update"}}
    client.create_crawler.return_value = {"ResponseMetadata": {"RequestId": "req-create"}}
    return client
