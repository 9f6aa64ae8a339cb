"""
Lambda entry point.

Two kinds of events reach the same function:

- CloudFormation custom-resource events (have ``RequestType``) from the
  deploy-time provider. Errors are raised so the stack deployment fails
  instead of leaving a crawler with stale or empty credentials.
- EventBridge events (schedule, secret changes). Errors are reported in the
  result and logged; the previous crawler configuration stays in place.
"""

import os

import structlog

from .aws import make_client
from .configurator import ScanJobConfigurator
from .errors import CrawlerSyncError
from .log import configure_logging
from .settings import load_settings
from .sync import sync_crawler

configure_logging(os.environ.get("LOG_LEVEL", "INFO"))

logger = structlog.get_logger(__name__)


def on_event(event, context):
    """CloudFormation custom-resource handler (deploy-time path)."""
    request_type = event["RequestType"]
    settings = load_settings()
    logger.info("deploy.event", request_type=request_type, crawler=settings.glue_crawler_name)

    if request_type == "Delete":
        # the physical id names the crawler this resource created, even after a rename
        crawler_name = event.get("PhysicalResourceId") or settings.glue_crawler_name
        target = settings.model_copy(update={"glue_crawler_name": crawler_name})
        ScanJobConfigurator(make_client("glue", target), target).delete()
        return {"PhysicalResourceId": crawler_name}

    receipt = sync_crawler(settings, trigger="deploy")
    return {
        "PhysicalResourceId": receipt.crawler_name,
        "Data": {
            "CrawlerName": receipt.crawler_name,
            "Action": receipt.action,
            "ConfigurationSha256": receipt.configuration_sha256,
        },
    }


def on_schedule(event, context):
    """EventBridge handler (scheduled / secret-change path)."""
    try:
        settings = load_settings()
        receipt = sync_crawler(settings, trigger=event.get("detail-type", "schedule"))
    except CrawlerSyncError as e:
        logger.error("schedule.failed", error_kind=e.kind, error=str(e))
        return {"status": "FAILED", "errorKind": e.kind, "message": str(e)}
    except Exception as e:
        # the exception text is not echoed; it may carry request parameters
        logger.error("schedule.failed", error_kind="Unknown", error_type=type(e).__name__)
        return {
            "status": "FAILED",
            "errorKind": "Unknown",
            "message": f"Unexpected {type(e).__name__} during crawler sync",
        }

    return {
        "status": "SUCCEEDED",
        "crawlerName": receipt.crawler_name,
        "action": receipt.action,
        "configurationSha256": receipt.configuration_sha256,
    }


def lambda_handler(event, context):
    if isinstance(event, dict) and "RequestType" in event:
        return on_event(event, context)
    return on_schedule(event if isinstance(event, dict) else {}, context)
