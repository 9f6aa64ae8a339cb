"""Secret-driven configuration of the Glue crawler behind the Athena/RDS stack."""

from .configurator import ScanJobConfigurator, build_connection, build_crawler_config
from .errors import (
    AccessDenied,
    ConfigureError,
    ConnectionBuildFailure,
    CrawlerSyncError,
    MalformedSecret,
    NotFound,
    ResolveError,
    SettingsError,
    StoreUnavailable,
    SubmissionRejected,
    SubmissionTimeout,
)
from .models import (
    ConnectionDescriptor,
    CrawlerConfig,
    ScanTarget,
    SchemaHint,
    SecretRecord,
    SubmissionReceipt,
)
from .resolver import CredentialResolver
from .settings import DeploymentSettings, load_settings
from .sync import SyncState, sync_crawler

__version__ = "0.1.0"
