"""Shell entry for a one-off, deploy-style crawler sync."""
import structlog

from .errors import CrawlerSyncError
from .log import configure_logging
from .settings import load_settings
from .sync import sync_crawler

logger = structlog.get_logger(__name__)


def run(secret_arn=None, crawler_name=None, log_level=None, secrets_client=None, glue_client=None) -> int:
    """Returns a process exit code: 0 on success, 1 on any sync failure."""
    overrides = {}
    if secret_arn:
        overrides["secret_arn"] = secret_arn
    if crawler_name:
        overrides["glue_crawler_name"] = crawler_name
    if log_level:
        overrides["log_level"] = log_level

    try:
        settings = load_settings(**overrides)
        configure_logging(settings.log_level)
        receipt = sync_crawler(settings, secrets_client=secrets_client, glue_client=glue_client, trigger="cli")
    except CrawlerSyncError as e:
        logger.error("cli.failed", error_kind=e.kind, error=str(e))
        return 1

    logger.info("cli.succeeded", crawler=receipt.crawler_name, action=receipt.action)
    return 0
