"""
Scan-Job Configurator.

Turns resolved credentials into a crawler configuration and submits it to
Glue as a create-or-update. The configuration is completely built before the
first remote call, so a build failure never touches the live crawler.
"""

from typing import Optional, Sequence

import structlog
from botocore.exceptions import BotoCoreError, ClientError, HTTPClientError
from botocore.exceptions import ConnectionError as EndpointError

from .errors import ConnectionBuildFailure, SubmissionRejected, SubmissionTimeout
from .models import (
    REDACTED,
    ConnectionDescriptor,
    CrawlerConfig,
    ScanTarget,
    SchemaHints,
    SecretRecord,
    SubmissionReceipt,
)
from .settings import DeploymentSettings

logger = structlog.get_logger(__name__)

_CONFLICT_CODES = {
    "ConcurrentModificationException",
    "CrawlerRunningException",
    "AlreadyExistsException",
    "ThrottlingException",
    "InternalServiceException",
    "ResourceNumberLimitExceededException",
}
_TIMEOUT_CODES = {"OperationTimeoutException", "RequestTimeout"}


def build_connection(secret: SecretRecord, protocol: str = "postgresql") -> ConnectionDescriptor:
    """
    Build ``jdbc:<protocol>://<host>:<port>/<dbname>`` plus auth fields.

    Raises:
        ConnectionBuildFailure: empty host/dbname/protocol or a port outside 1-65535
    """
    if not protocol:
        raise ConnectionBuildFailure("JDBC protocol is empty")
    for name in ("host", "dbname", "username"):
        if not str(getattr(secret, name)).strip():
            raise ConnectionBuildFailure(f"Secret field is empty: {name}", {"field": name})
    try:
        port = int(str(secret.port).strip())
    except ValueError:
        raise ConnectionBuildFailure(
            f"Port is not numeric: {secret.port!r}", {"field": "port"}
        ) from None
    if not 1 <= port <= 65535:
        raise ConnectionBuildFailure(f"Port out of range: {port}", {"field": "port"})

    url = f"jdbc:{protocol}://{secret.host.strip()}:{port}/{secret.dbname.strip()}"
    return ConnectionDescriptor(url=url, username=secret.username, password=secret.password)


def build_crawler_config(
    secret: SecretRecord,
    targets: Sequence[ScanTarget],
    schema_hints: SchemaHints,
    protocol: str = "postgresql",
) -> CrawlerConfig:
    if not targets:
        raise ConnectionBuildFailure("At least one scan target is required")
    connection = build_connection(secret, protocol)
    try:
        return CrawlerConfig(connection=connection, scan_targets=tuple(targets), schema_hints=schema_hints)
    except ValueError as e:
        raise ConnectionBuildFailure(str(e)) from e


def _scrub(text: str, secret: str) -> str:
    if secret and secret in text:
        return text.replace(secret, REDACTED)
    return text


def _client_failure(operation: str, error: BotoCoreError, password: str) -> SubmissionRejected:
    # client-side failures (bad parameters, missing credentials) repeat on every attempt
    return SubmissionRejected(
        f"{operation} failed before reaching Glue: {_scrub(str(error), password)}",
        retryable=False,
        details={"operation": operation, "code": type(error).__name__},
    )


class ScanJobConfigurator:
    """Submits crawler configuration for the crawler named in the settings."""

    def __init__(self, glue_client, settings: DeploymentSettings):
        self._glue = glue_client
        self._settings = settings

    @property
    def crawler_name(self) -> str:
        return self._settings.glue_crawler_name

    def build(self, secret: SecretRecord, targets: Sequence[ScanTarget], schema_hints: SchemaHints) -> CrawlerConfig:
        return build_crawler_config(secret, targets, schema_hints, protocol=self._settings.jdbc_protocol)

    def configure(
        self,
        secret: SecretRecord,
        targets: Sequence[ScanTarget],
        schema_hints: SchemaHints,
    ) -> SubmissionReceipt:
        """
        Build the crawler configuration and create or update the crawler.

        Raises:
            ConnectionBuildFailure: the secret fields cannot form a connection
            SubmissionRejected: Glue refused the request (retryable on conflicts)
            SubmissionTimeout: the call timed out or the endpoint was unreachable
        """
        config = self.build(secret, targets, schema_hints)
        return self.submit(config)

    def submit(self, config: CrawlerConfig) -> SubmissionReceipt:
        request = self._request(config)
        password = config.connection.password

        exists = self._call("get_crawler", password, Name=self.crawler_name) is not None
        if exists:
            response = self._call("update_crawler", password, **request)
            action = "updated"
        else:
            if "Role" not in request:
                raise SubmissionRejected(
                    f"Crawler {self.crawler_name} does not exist and no crawler_role_arn is configured",
                    details={"operation": "create_crawler"},
                )
            response = self._call("create_crawler", password, **request)
            action = "created"

        receipt = SubmissionReceipt(
            crawler_name=self.crawler_name,
            action=action,
            configuration_sha256=config.sha256(),
            request_id=(response or {}).get("ResponseMetadata", {}).get("RequestId", ""),
        )
        logger.info(
            "crawler.submitted",
            crawler=receipt.crawler_name,
            action=receipt.action,
            configuration_sha256=receipt.configuration_sha256,
            targets=len(config.scan_targets),
            schema_hints=len(config.schema_hints),
        )
        return receipt

    def delete(self) -> bool:
        """Remove the crawler; returns False when it was already gone."""
        try:
            self._glue.delete_crawler(Name=self.crawler_name)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "EntityNotFoundException":
                logger.info("crawler.delete_skipped", crawler=self.crawler_name, reason="not found")
                return False
            raise self._translate("delete_crawler", e, "") from e
        except (EndpointError, HTTPClientError) as e:
            raise SubmissionTimeout(f"delete_crawler failed: {e}", {"operation": "delete_crawler"}) from e
        except BotoCoreError as e:
            raise _client_failure("delete_crawler", e, "") from e
        logger.info("crawler.deleted", crawler=self.crawler_name)
        return True

    def _request(self, config: CrawlerConfig) -> dict:
        request = {
            "Name": self.crawler_name,
            "DatabaseName": self._settings.glue_database_name,
            "Targets": {"JdbcTargets": config.jdbc_targets()},
            "Configuration": config.to_json(),
        }
        if self._settings.crawler_role_arn:
            request["Role"] = self._settings.crawler_role_arn
        if self._settings.crawler_schedule:
            request["Schedule"] = self._settings.crawler_schedule
        return request

    def _call(self, operation: str, password: str, **kwargs) -> Optional[dict]:
        try:
            return getattr(self._glue, operation)(**kwargs)
        except ClientError as e:
            code = e.response.get("Error", {}).get("Code", "")
            if operation == "get_crawler" and code == "EntityNotFoundException":
                return None
            # chained errors would carry the raw service message, which may echo the payload
            raise self._translate(operation, e, password) from None
        except (EndpointError, HTTPClientError) as e:
            raise SubmissionTimeout(
                f"{operation} did not complete: {_scrub(str(e), password)}", {"operation": operation}
            ) from None
        except BotoCoreError as e:
            raise _client_failure(operation, e, password) from None

    @staticmethod
    def _translate(operation: str, error: ClientError, password: str):
        code = error.response.get("Error", {}).get("Code", "")
        message = _scrub(error.response.get("Error", {}).get("Message", ""), password)
        details = {"operation": operation, "code": code}
        if code in _TIMEOUT_CODES:
            return SubmissionTimeout(f"{operation} timed out: {message or code}", details)
        return SubmissionRejected(
            f"{operation} rejected: {message or code}",
            retryable=code in _CONFLICT_CODES,
            details=details,
        )
