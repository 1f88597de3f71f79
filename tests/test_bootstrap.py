from __future__ import annotations

import json
import re

import httpx
import pytest
from pydantic import ValidationError

from odps_dbapi import Connection, RemoteJobFailure, Settings, build_connection, connect
from odps_dbapi.infrastructure.odps import OdpsRestClient

ENDPOINT = "https://service.example.com/api"

_ROW_RANGE = re.compile(r"\((\d+),(\d+)\)")


def settings(**overrides: object) -> Settings:
    values: dict[str, object] = {
        "endpoint": ENDPOINT,
        "project": "analytics",
        "poll_interval_seconds": 0.0,
    }
    values.update(overrides)
    return Settings(**values)


class FakeServer:
    """Minimal instance, table and download resources behind one MockTransport."""

    def __init__(self, rows: list[list[object]], task_status: str = "Success") -> None:
        self.rows = rows
        self.task_status = task_status
        self.queries: list[str] = []
        self.settings: list[dict[str, str]] = []
        self.authorization: list[str | None] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.authorization.append(request.headers.get("Authorization"))
        path = request.url.path
        params = request.url.params

        if request.method == "POST" and path.endswith("/instances"):
            task = json.loads(request.content)["Instance"]["Job"]["Tasks"][0]
            self.queries.append(task["Query"])
            self.settings.append(json.loads(task.get("Config", {}).get("settings", "{}")))
            instance_id = f"i{len(self.queries)}"
            return httpx.Response(201, headers={"Location": f"{path}/{instance_id}"})
        if "/instances/" in path:
            if "taskstatus" in params:
                return httpx.Response(
                    200, json={"Tasks": [{"Name": "dbapi_sql_task", "Status": self.task_status}]}
                )
            if "result" in params:
                return httpx.Response(
                    200, json={"Tasks": [{"Name": "dbapi_sql_task", "Result": "bad column"}]}
                )
            if "instancesummary" in params:
                summary = {"Outputs": {"analytics.t": [len(self.rows), 100]}}
                return httpx.Response(200, json={"JsonSummary": json.dumps(summary)})
            return httpx.Response(200, json={"Status": "Terminated"})
        if "/tables/" in path:
            if "schema" in params:
                return httpx.Response(
                    200,
                    json={
                        "columns": [
                            {"name": "id", "type": "BIGINT"},
                            {"name": "name", "type": "STRING"},
                        ]
                    },
                )
            if "downloads" in params:
                return httpx.Response(
                    200, json={"DownloadID": "dl-1", "RecordCount": len(self.rows)}
                )
            match = _ROW_RANGE.fullmatch(params["rowrange"])
            assert match is not None
            start, count = int(match.group(1)), int(match.group(2))
            return httpx.Response(200, json={"records": self.rows[start : start + count]})
        return httpx.Response(404, json={"Message": f"unexpected {path}"})


def test_settings_require_endpoint_and_project() -> None:
    with pytest.raises(ValidationError, match="ODPS_DBAPI_ENDPOINT is required"):
        Settings(project="analytics")
    with pytest.raises(ValidationError, match="ODPS_DBAPI_PROJECT is required"):
        Settings(endpoint=ENDPOINT)


@pytest.mark.parametrize(
    ("overrides", "message"),
    [
        ({"access_id": "id"}, "must be set together"),
        ({"lifecycle_days": 0}, "LIFECYCLE_DAYS"),
        ({"poll_interval_seconds": -1}, "POLL_INTERVAL_SECONDS"),
        ({"fetch_size": 0}, "FETCH_SIZE"),
        ({"http_timeout_seconds": 0}, "HTTP_TIMEOUT_SECONDS"),
        ({"logview_hours": 0}, "LOGVIEW_HOURS"),
        ({"sql_task_properties": "odps.x"}, "expected key=value"),
    ],
)
def test_settings_validation(overrides: dict[str, object], message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        settings(**overrides)


def test_settings_from_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ODPS_DBAPI_ENDPOINT", ENDPOINT)
    monkeypatch.setenv("ODPS_DBAPI_PROJECT", "analytics")
    monkeypatch.setenv("ODPS_DBAPI_SQL_TASK_PROPERTIES", "odps.sql.a=1, odps.sql.b = x=y")
    monkeypatch.setenv("ODPS_DBAPI_LIFECYCLE_DAYS", "7")

    loaded = Settings()

    assert loaded.sql_task_properties == {"odps.sql.a": "1", "odps.sql.b": "x=y"}
    assert loaded.lifecycle_days == 7
    assert loaded.resolved_tunnel_endpoint == ENDPOINT


def test_settings_accept_json_properties() -> None:
    loaded = settings(
        sql_task_properties='{"odps.sql.a": "1"}',
        tunnel_endpoint=" https://tunnel.example.com ",
    )

    assert loaded.sql_task_properties == {"odps.sql.a": "1"}
    assert loaded.resolved_tunnel_endpoint == "https://tunnel.example.com"


def test_build_connection_wires_http_adapters() -> None:
    connection = build_connection(settings(lifecycle_days=5, fetch_size=50))

    assert isinstance(connection, Connection)
    assert isinstance(connection.job_service, OdpsRestClient)
    assert connection.lifecycle_days == 5
    assert connection.fetch_size == 50
    connection.close()
    assert connection.closed is True


def test_connect_applies_overrides() -> None:
    with connect(settings(), lifecycle_days=9) as connection:
        assert connection.lifecycle_days == 9

    with connect(endpoint=ENDPOINT, project="analytics", fetch_size=7) as connection:
        assert connection.fetch_size == 7


def test_query_round_trip_over_http() -> None:
    server = FakeServer(rows=[[1, "a"], [2, "b"], [3, "c"]])
    connection = build_connection(
        settings(
            access_id="my-id",
            access_key="my-key",
            fetch_size=2,
            sql_task_properties="odps.sql.a=1",
        ),
        transport=httpx.MockTransport(server),
    )

    with connection, connection.create_statement() as statement:
        assert statement.execute("SELECT id, name FROM src") is True
        result_set = statement.get_result_set()
        assert result_set is not None
        assert result_set.description[0][:2] == ("id", "BIGINT")
        assert result_set.fetchall() == [(1, "a"), (2, "b"), (3, "c")]
        warning = statement.get_warnings()
        assert warning is not None
        assert "i=i1" in warning.message

    create_query, drop_query = server.queries
    assert re.fullmatch(
        r"create table dbapi_temp_tbl_\w+ lifecycle 3 as SELECT id, name FROM src;",
        create_query,
    )
    assert drop_query.startswith("drop table if exists dbapi_temp_tbl_")
    assert server.settings[0] == {"odps.sql.a": "1"}
    assert all(value and value.startswith("ODPS my-id:") for value in server.authorization)


def test_update_round_trip_over_http() -> None:
    server = FakeServer(rows=[[1], [2]])
    connection = build_connection(settings(), transport=httpx.MockTransport(server))

    with connection:
        statement = connection.create_statement()
        assert statement.execute("INSERT INTO t VALUES (1), (2)") is False
        assert statement.get_update_count() == 2

    assert server.queries == ["INSERT INTO t VALUES (1), (2);"]
    assert server.authorization == [None] * len(server.authorization)


def test_failed_update_over_http() -> None:
    server = FakeServer(rows=[], task_status="Failed")
    connection = build_connection(settings(), transport=httpx.MockTransport(server))

    with connection:
        statement = connection.create_statement()
        with pytest.raises(RemoteJobFailure, match="bad column"):
            statement.execute("INSERT INTO t VALUES ('x')")
