import json

import pytest
from structlog.testing import capture_logs

from conftest import SECRET_ARN, client_error, secrets_returning
from crawlerconf.errors import AccessDenied, MalformedSecret, StoreUnavailable, SubmissionRejected
from crawlerconf.sync import SyncState, sync_crawler


def test_end_to_end_scenario(settings, secrets_client, glue_client):
    receipt = sync_crawler(settings, secrets_client, glue_client, sleep=lambda s: None)

    assert receipt.action == "updated"
    secrets_client.get_secret_value.assert_called_once_with(SecretId=SECRET_ARN)
    kwargs = glue_client.update_crawler.call_args.kwargs
    payload = json.loads(kwargs["Configuration"])
    assert payload["JDBC_CONNECTION_URL"] == "jdbc:postgresql://db.example.com:5432/my_initial_database"
    assert payload["USERNAME"] == "admin"
    assert kwargs["Targets"] == {
        "JdbcTargets": [{"ConnectionName": "postgres_connection", "Path": "my_initial_database/public/test_table"}]
    }


def test_state_transitions_logged_in_order(settings, secrets_client, glue_client):
    with capture_logs() as logs:
        sync_crawler(settings, secrets_client, glue_client, trigger="deploy", sleep=lambda s: None)

    states = [e["state"] for e in logs if e["event"] == "sync.state"]
    assert states == [
        SyncState.IDLE.value,
        SyncState.RESOLVING_SECRET.value,
        SyncState.BUILDING_CONFIG.value,
        SyncState.SUBMITTING.value,
        SyncState.SUCCEEDED.value,
    ]


def test_malformed_secret_short_circuits(settings, secret_value, glue_client):
    del secret_value["dbname"]
    with pytest.raises(MalformedSecret):
        sync_crawler(settings, secrets_returning(secret_value), glue_client, sleep=lambda s: None)
    assert glue_client.method_calls == []


def test_access_denied_is_not_retried(settings, glue_client):
    secrets = secrets_returning({})
    secrets.get_secret_value.side_effect = client_error("AccessDeniedException", "not allowed")
    sleeps = []

    with capture_logs() as logs:
        with pytest.raises(AccessDenied):
            sync_crawler(settings, secrets, glue_client, sleep=sleeps.append)

    assert secrets.get_secret_value.call_count == 1
    assert sleeps == []
    assert glue_client.method_calls == []
    assert logs[-1]["state"] == SyncState.FAILED.value
    assert logs[-1]["error_kind"] == "AccessDenied"


def test_transient_store_failure_retried(settings, secret_value, glue_client):
    secrets = secrets_returning(secret_value)
    good = secrets.get_secret_value.return_value
    secrets.get_secret_value.side_effect = [client_error("InternalServiceError", status=500), good]
    sleeps = []

    receipt = sync_crawler(settings, secrets, glue_client, sleep=sleeps.append)

    assert receipt.action == "updated"
    assert secrets.get_secret_value.call_count == 2
    assert len(sleeps) == 1


def test_retries_bounded_by_max_attempts(settings, glue_client):
    secrets = secrets_returning({})
    secrets.get_secret_value.side_effect = client_error("ThrottlingException")
    sleeps = []

    with pytest.raises(StoreUnavailable):
        sync_crawler(settings, secrets, glue_client, sleep=sleeps.append)

    assert secrets.get_secret_value.call_count == settings.max_attempts == 3
    assert len(sleeps) == 2


def test_conflicting_update_retried_with_fresh_secret(settings, secret_value, glue_client):
    secrets = secrets_returning(secret_value)
    glue_client.update_crawler.side_effect = [
        client_error("ConcurrentModificationException", "another update in progress"),
        {},
    ]

    sync_crawler(settings, secrets, glue_client, sleep=lambda s: None)

    assert secrets.get_secret_value.call_count == 2
    assert glue_client.update_crawler.call_count == 2


def test_terminal_rejection_not_retried(settings, secrets_client, glue_client):
    glue_client.update_crawler.side_effect = client_error("InvalidInputException", "bad")
    with pytest.raises(SubmissionRejected):
        sync_crawler(settings, secrets_client, glue_client, sleep=lambda s: None)
    assert glue_client.update_crawler.call_count == 1


def test_password_never_logged_or_reported(settings, secret_value, glue_client):
    password = "Pa55-w0rd!unique"
    secret_value["password"] = password
    glue_client.update_crawler.side_effect = [
        client_error("ConcurrentModificationException", f"conflict while applying {password}"),
        client_error("InvalidInputException", f"rejected PASSWORD={password}"),
    ]

    with capture_logs() as logs:
        with pytest.raises(SubmissionRejected) as exc:
            sync_crawler(settings, secrets_returning(secret_value), glue_client, sleep=lambda s: None)

    emitted = [repr(entry) for entry in logs] + [str(exc.value), repr(exc.value.details)]
    assert logs
    assert not [text for text in emitted if password in text]
