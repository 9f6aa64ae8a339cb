"""boto3 client factory."""
import boto3
from botocore.config import Config

from .settings import DeploymentSettings


def make_client(service_name: str, settings: DeploymentSettings):
    """
    Create a client with the caller's timeouts.

    botocore's own retries are switched off: the retry policy belongs to
    ``sync_crawler`` so that every attempt re-resolves the secret.
    """
    config = Config(
        connect_timeout=settings.connect_timeout,
        read_timeout=settings.read_timeout,
        retries={"max_attempts": 1, "mode": "standard"},
    )
    return boto3.client(service_name, config=config)
