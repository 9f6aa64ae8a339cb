"""Credential Resolver: read database credentials from Secrets Manager."""
import json
import re

import structlog
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    CredentialRetrievalError,
    HTTPClientError,
    NoCredentialsError,
    ParamValidationError,
    PartialCredentialsError,
)
from botocore.exceptions import ConnectionError as EndpointError

from .errors import AccessDenied, MalformedSecret, NotFound, StoreUnavailable
from .models import REQUIRED_SECRET_FIELDS, SecretRecord

logger = structlog.get_logger(__name__)

MAX_SECRET_REF_LENGTH = 2048
_WHITESPACE = re.compile(r"\s")

_NOT_FOUND_CODES = {"ResourceNotFoundException", "InvalidRequestException"}
_ACCESS_DENIED_CODES = {"AccessDeniedException", "AccessDenied", "DecryptionFailure", "UnrecognizedClientException"}
_UNAVAILABLE_CODES = {
    "InternalServiceError",
    "ThrottlingException",
    "Throttling",
    "TooManyRequestsException",
    "ServiceUnavailable",
    "RequestTimeout",
}
_CREDENTIAL_ERRORS = (NoCredentialsError, PartialCredentialsError, CredentialRetrievalError)


def _validate_ref(secret_ref: str) -> None:
    if not isinstance(secret_ref, str) or not secret_ref:
        raise ValueError("secret_ref must be a non-empty string")
    if len(secret_ref) > MAX_SECRET_REF_LENGTH or _WHITESPACE.search(secret_ref):
        raise ValueError(f"secret_ref is not a well-formed secret identifier: {secret_ref!r}")


def parse_secret_string(secret_ref: str, secret_string) -> SecretRecord:
    """
    Validate the structured secret value and build a SecretRecord.

    Missing keys, nulls and blank strings all count as missing; every missing
    field is reported, nothing is defaulted.
    """
    if secret_string is None:
        raise MalformedSecret("Secret has no SecretString value", details={"secret_ref": secret_ref})
    try:
        value = json.loads(secret_string)
    except (TypeError, ValueError):
        # the raw text may be the password itself, so it is not echoed
        raise MalformedSecret("Secret value is not valid JSON", details={"secret_ref": secret_ref}) from None
    if not isinstance(value, dict):
        raise MalformedSecret("Secret value is not a JSON object", details={"secret_ref": secret_ref})

    missing = [k for k in REQUIRED_SECRET_FIELDS if value.get(k) is None or str(value[k]).strip() == ""]
    if missing:
        raise MalformedSecret(
            f"Secret is missing required fields: {', '.join(missing)}",
            missing_fields=missing,
            details={"secret_ref": secret_ref},
        )
    return SecretRecord(**{k: str(value[k]) for k in REQUIRED_SECRET_FIELDS})


class CredentialResolver:
    """Fetches the secret fresh on every call; nothing is cached."""

    def __init__(self, client):
        self._client = client

    def resolve(self, secret_ref: str) -> SecretRecord:
        """
        Fetch and validate database credentials.

        Raises:
            ValueError: secret_ref is not a well-formed identifier
            NotFound, AccessDenied, MalformedSecret, StoreUnavailable
        """
        _validate_ref(secret_ref)
        try:
            response = self._client.get_secret_value(SecretId=secret_ref)
        except ClientError as e:
            raise self._translate(secret_ref, e) from e
        except _CREDENTIAL_ERRORS as e:
            raise AccessDenied(
                f"No usable AWS credentials: {e}", {"secret_ref": secret_ref, "code": type(e).__name__}
            ) from e
        except (EndpointError, HTTPClientError) as e:
            raise StoreUnavailable(f"Secret store unreachable: {e}", {"secret_ref": secret_ref}) from e
        except ParamValidationError as e:
            raise NotFound(
                f"Secret request rejected by the client: {e}", {"secret_ref": secret_ref, "code": "ParamValidationError"}
            ) from e
        except BotoCoreError as e:
            raise StoreUnavailable(
                f"Secret store call failed: {e}", {"secret_ref": secret_ref, "code": type(e).__name__}
            ) from e

        record = parse_secret_string(secret_ref, response.get("SecretString"))
        logger.info(
            "secret.resolved",
            secret_ref=secret_ref,
            version_id=response.get("VersionId"),
            host=record.host,
            port=record.port,
            dbname=record.dbname,
            username=record.username,
        )
        return record

    @staticmethod
    def _translate(secret_ref: str, error: ClientError):
        code = error.response.get("Error", {}).get("Code", "")
        message = error.response.get("Error", {}).get("Message", "")
        details = {"secret_ref": secret_ref, "code": code}
        if code in _NOT_FOUND_CODES:
            return NotFound(f"Secret not found: {message or secret_ref}", details)
        if code in _ACCESS_DENIED_CODES:
            return AccessDenied(f"Access to secret denied: {message or code}", details)
        if code in _UNAVAILABLE_CODES or error.response.get("ResponseMetadata", {}).get("HTTPStatusCode", 0) >= 500:
            return StoreUnavailable(f"Secret store unavailable: {message or code}", details)
        # remaining client-side codes (bad parameters) are not retryable
        return NotFound(f"Secret request rejected ({code}): {message or secret_ref}", details)
