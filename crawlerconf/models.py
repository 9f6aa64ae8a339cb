"""Domain models for crawler configuration."""
import hashlib
import json
from dataclasses import dataclass, field
from typing import Mapping, Sequence, Union

REDACTED = "****"

REQUIRED_SECRET_FIELDS = ("host", "port", "dbname", "username", "password")


@dataclass(frozen=True)
class SecretRecord:
    """Database credentials as stored in the secret. Values are kept verbatim."""
    host: str
    port: str
    dbname: str
    username: str
    password: str = field(repr=False)


@dataclass(frozen=True)
class ScanTarget:
    connection_name: str
    path: str


@dataclass(frozen=True)
class SchemaHint:
    column_name: str
    data_type: str


@dataclass(frozen=True)
class ConnectionDescriptor:
    url: str
    username: str
    password: str = field(repr=False)


SchemaHints = Union[Mapping[str, str], Sequence[SchemaHint]]


def normalize_schema_hints(hints: SchemaHints) -> tuple[SchemaHint, ...]:
    """
    Turn a column->type mapping or a sequence of SchemaHint into an ordered tuple.

    Raises:
        ValueError: if a column name appears more than once
    """
    if isinstance(hints, Mapping):
        items = tuple(SchemaHint(column_name=k, data_type=v) for k, v in hints.items())
    else:
        items = tuple(hints)

    seen: set[str] = set()
    for hint in items:
        if hint.column_name in seen:
            raise ValueError(f"Duplicate schema hint for column: {hint.column_name}")
        seen.add(hint.column_name)
    return items


@dataclass(frozen=True)
class CrawlerConfig:
    connection: ConnectionDescriptor
    scan_targets: tuple[ScanTarget, ...]
    schema_hints: tuple[SchemaHint, ...]

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "scan_targets", tuple(self.scan_targets))
        object.__setattr__(self, "schema_hints", normalize_schema_hints(self.schema_hints))

    def _payload(self, password: str) -> dict:
        # Key order is part of the wire format: identical inputs must give identical text.
        return {
            "JDBC_CONNECTION_URL": self.connection.url,
            "PASSWORD": password,
            "USERNAME": self.connection.username,
            "STORAGE_DESCRIPTOR": [
                {"COLUMN_NAME": h.column_name, "DATA_TYPE": h.data_type}
                for h in self.schema_hints
            ],
        }

    def to_json(self) -> str:
        """Configuration text submitted to the crawler service."""
        return json.dumps(self._payload(self.connection.password))

    def redacted(self) -> dict:
        """Same payload with the password masked, safe to log or print."""
        return self._payload(REDACTED)

    def jdbc_targets(self) -> list[dict]:
        return [{"ConnectionName": t.connection_name, "Path": t.path} for t in self.scan_targets]

    def sha256(self) -> str:
        # Digest of the redacted payload; reported in outputs, so no password material.
        return hashlib.sha256(json.dumps(self.redacted()).encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SubmissionReceipt:
    crawler_name: str
    action: str  # "created" or "updated"
    configuration_sha256: str
    request_id: str = ""
