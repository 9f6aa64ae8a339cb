"""
Deployment settings.

One explicit struct carries every identifier the crawler sync needs. The CDK
stack renders it into the Lambda environment with ``to_environment()`` and the
function loads it back with ``load_settings()``, so the deploy-time and the
scheduled paths always work from the same values.
"""

import json
from typing import Optional

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import SettingsError
from .models import ScanTarget, SchemaHint, normalize_schema_hints


def _default_targets() -> list[ScanTarget]:
    return [ScanTarget(connection_name="postgres_connection", path="my_initial_database/public/test_table")]


def _default_hints() -> list[SchemaHint]:
    return [
        SchemaHint(column_name="id", data_type="int"),
        SchemaHint(column_name="name", data_type="string"),
        SchemaHint(column_name="age", data_type="int"),
    ]


class DeploymentSettings(BaseSettings):
    """Settings loaded from environment variables (names are the upper-cased field names)."""

    model_config = SettingsConfigDict(
        case_sensitive=False,
        extra="ignore",
    )

    # -------------------------------------------------------------------------
    # Secret store
    # -------------------------------------------------------------------------
    secret_arn: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        pattern=r"^arn:[^:\s]+:secretsmanager:\S+$",
        description="ARN (full or partial) of the database secret; IAM policies are built from it",
    )

    # -------------------------------------------------------------------------
    # Crawler
    # -------------------------------------------------------------------------
    glue_crawler_name: str = Field(default="pocGlueCrawler", min_length=1)
    glue_database_name: str = Field(default="postgres_glue_db", min_length=1)
    crawler_role_arn: Optional[str] = Field(default=None, description="Role the crawler runs as")
    crawler_schedule: Optional[str] = Field(default=None, description="Glue cron expression for crawler runs")
    jdbc_protocol: str = Field(default="postgresql", min_length=1)
    scan_targets: list[ScanTarget] = Field(default_factory=_default_targets, min_length=1)
    schema_hints: list[SchemaHint] = Field(default_factory=_default_hints)

    # -------------------------------------------------------------------------
    # Runtime behaviour
    # -------------------------------------------------------------------------
    sync_schedule: str = Field(default="rate(1 hour)", description="EventBridge schedule for re-syncs")
    connect_timeout: float = Field(default=5.0, gt=0)
    read_timeout: float = Field(default=30.0, gt=0)
    max_attempts: int = Field(default=3, ge=1)
    base_delay: float = Field(default=1.0, ge=0)
    max_delay: float = Field(default=20.0, ge=0)
    deadline_seconds: float = Field(default=120.0, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("schema_hints")
    @classmethod
    def _unique_columns(cls, v: list[SchemaHint]) -> list[SchemaHint]:
        return list(normalize_schema_hints(v))

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        return v.upper()

    def to_environment(self) -> dict[str, str]:
        """Render as Lambda environment variables; unset optionals are left out."""
        env: dict[str, str] = {}
        for name, value in self.model_dump(mode="json").items():
            if value is None:
                continue
            env[name.upper()] = value if isinstance(value, str) else json.dumps(value)
        return env


def load_settings(**overrides) -> DeploymentSettings:
    """
    Build settings from the environment, with keyword overrides taking precedence.

    Raises:
        SettingsError: if a value is missing or invalid
    """
    try:
        return DeploymentSettings(**overrides)
    except ValidationError as e:
        problems = [
            f"{'.'.join(str(p) for p in err['loc']) or 'settings'}: {err['msg']}"
            for err in e.errors()
        ]
        raise SettingsError("Invalid deployment settings", {"problems": problems}) from e
