"""
Crawler sync orchestration.

``sync_crawler`` is the single code path behind every trigger (CloudFormation
deploy, EventBridge schedule, secret change, operator script):

    Idle -> ResolvingSecret -> BuildingConfig -> Submitting -> Succeeded | Failed(kind)

Retries live here, not in the components: retryable failures start a fresh
attempt from ResolvingSecret so a rotated secret is picked up.
"""

import time
from enum import Enum

import structlog
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception,
    stop_after_attempt,
    stop_after_delay,
    wait_exponential_jitter,
)

from .aws import make_client
from .configurator import ScanJobConfigurator
from .errors import CrawlerSyncError
from .models import SubmissionReceipt
from .resolver import CredentialResolver
from .settings import DeploymentSettings

logger = structlog.get_logger(__name__)


class SyncState(str, Enum):
    IDLE = "Idle"
    RESOLVING_SECRET = "ResolvingSecret"
    BUILDING_CONFIG = "BuildingConfig"
    SUBMITTING = "Submitting"
    SUCCEEDED = "Succeeded"
    FAILED = "Failed"


def _is_retryable(error: BaseException) -> bool:
    return isinstance(error, CrawlerSyncError) and error.retryable


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception()
    logger.warning(
        "sync.retry",
        attempt=retry_state.attempt_number,
        error_kind=getattr(error, "kind", type(error).__name__),
        error=str(error),
        sleep_seconds=round(retry_state.next_action.sleep, 3) if retry_state.next_action else 0,
    )


def _attempt(settings: DeploymentSettings, resolver: CredentialResolver,
             configurator: ScanJobConfigurator, log) -> SubmissionReceipt:
    log.info("sync.state", state=SyncState.RESOLVING_SECRET.value)
    secret = resolver.resolve(settings.secret_arn)

    log.info("sync.state", state=SyncState.BUILDING_CONFIG.value)
    config = configurator.build(secret, settings.scan_targets, settings.schema_hints)

    log.info("sync.state", state=SyncState.SUBMITTING.value)
    return configurator.submit(config)


def sync_crawler(
    settings: DeploymentSettings,
    secrets_client=None,
    glue_client=None,
    trigger: str = "manual",
    sleep=time.sleep,
) -> SubmissionReceipt:
    """
    Resolve the database secret and push the resulting configuration to the crawler.

    Args:
        settings: deployment settings shared by every trigger
        secrets_client: Secrets Manager client (created from settings if omitted)
        glue_client: Glue client (created from settings if omitted)
        trigger: label for logs ("deploy", "schedule", ...)
        sleep: backoff sleep function

    Returns:
        SubmissionReceipt for the successful submission

    Raises:
        CrawlerSyncError: the last error once it is terminal or retries are exhausted
    """
    log = logger.bind(trigger=trigger, crawler=settings.glue_crawler_name)
    log.info("sync.state", state=SyncState.IDLE.value)

    resolver = CredentialResolver(secrets_client or make_client("secretsmanager", settings))
    configurator = ScanJobConfigurator(glue_client or make_client("glue", settings), settings)

    retrying = Retrying(
        stop=stop_after_attempt(settings.max_attempts) | stop_after_delay(settings.deadline_seconds),
        wait=wait_exponential_jitter(
            initial=settings.base_delay, max=settings.max_delay, jitter=settings.base_delay
        ),
        retry=retry_if_exception(_is_retryable),
        before_sleep=_log_retry,
        sleep=sleep,
        reraise=True,
    )
    try:
        receipt = retrying(_attempt, settings, resolver, configurator, log)
    except CrawlerSyncError as e:
        log.error("sync.state", state=SyncState.FAILED.value, error_kind=e.kind, error=str(e))
        raise
    except Exception as e:
        log.error("sync.state", state=SyncState.FAILED.value, error_kind="Unknown", error_type=type(e).__name__)
        raise

    log.info(
        "sync.state",
        state=SyncState.SUCCEEDED.value,
        action=receipt.action,
        configuration_sha256=receipt.configuration_sha256,
    )
    return receipt
