# ruff: noqa: ANN201, ANN206, D100, D101, D102, INP001, PLC0415, PT009

import logging
import re
import tempfile
import unittest
from pathlib import Path

import test_support

ACCESS_LOGGER = "devops_practice.access"
LINE_RE = re.compile(
    r"^\[\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}\.\d{3}Z\] (\S+) (\S+) (\d{3}) (\d+)ms$",
)


class TestRequestLogger(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.FastAPI, cls.TestClient = test_support.require_fastapi()

    def test_one_line_per_request(self):
        client = test_support.make_test_client()
        with self.assertLogs(ACCESS_LOGGER, level="INFO") as cm:
            response = client.get("/health")
        self.assertEqual(response.status_code, 200)

        self.assertEqual(len(cm.records), 1)
        record = cm.records[0]
        match = LINE_RE.match(record.getMessage())
        self.assertIsNotNone(match, msg=record.getMessage())
        self.assertEqual(match.group(1), "GET")
        self.assertEqual(match.group(2), "/health")
        self.assertEqual(match.group(3), "200")

        entry = record.request_log
        self.assertEqual(entry.method, "GET")
        self.assertEqual(entry.path, "/health")
        self.assertEqual(entry.status, 200)
        self.assertEqual(entry.severity, "low")
        self.assertGreaterEqual(entry.duration_ms, 0)
        self.assertEqual(record.levelno, logging.INFO)

    def test_original_path_keeps_query_string(self):
        client = test_support.make_test_client()
        with self.assertLogs(ACCESS_LOGGER, level="INFO") as cm:
            client.get("/api/data?page=2")
        self.assertEqual(cm.records[0].request_log.path, "/api/data?page=2")

    def test_client_errors_are_medium_severity(self):
        client = test_support.make_test_client()
        with (
            self.assertLogs(ACCESS_LOGGER, level="INFO") as cm,
            self.assertLogs("devops_practice.http.errors", level="ERROR"),
        ):
            client.get("/does-not-exist", headers=test_support.JSON_HEADERS)

        self.assertEqual(len(cm.records), 1)
        record = cm.records[0]
        self.assertEqual(record.request_log.status, 404)
        self.assertEqual(record.request_log.severity, "medium")
        self.assertEqual(record.levelno, logging.WARNING)

    def test_server_errors_are_logged_after_fault_handling(self):
        app = test_support.build_test_app()

        @app.post("/explode")
        async def _explode():
            message = "explode"
            raise ValueError(message)

        client = test_support.make_test_client(app)
        with (
            self.assertLogs(ACCESS_LOGGER, level="INFO") as cm,
            self.assertLogs("devops_practice.http.errors", level="ERROR"),
        ):
            response = client.post("/explode")

        self.assertEqual(response.status_code, 500)
        self.assertEqual(len(cm.records), 1)
        record = cm.records[0]
        self.assertEqual(record.request_log.method, "POST")
        self.assertEqual(record.request_log.status, 500)
        self.assertEqual(record.request_log.severity, "high")
        self.assertEqual(record.levelno, logging.ERROR)

    def test_failure_inside_error_handler_is_logged_once_as_500(self):
        with tempfile.TemporaryDirectory() as empty_dir:
            app = test_support.build_test_app(templates_dir=Path(empty_dir))
            client = self.TestClient(app, raise_server_exceptions=False)
            with (
                self.assertLogs(ACCESS_LOGGER, level="INFO") as cm,
                self.assertLogs("devops_practice.http.errors", level="ERROR"),
            ):
                response = client.get("/nope", headers=test_support.BROWSER_HEADERS)

        self.assertEqual(response.status_code, 500)
        self.assertEqual(len(cm.records), 1)
        entry = cm.records[0].request_log
        self.assertEqual(entry.path, "/nope")
        self.assertEqual(entry.status, 500)
        self.assertEqual(entry.severity, "high")

    def test_redirects_are_low_severity(self):
        client = test_support.make_test_client()
        with self.assertLogs(ACCESS_LOGGER, level="INFO") as cm:
            response = client.get("/logout")
        self.assertEqual(response.status_code, 302)
        self.assertEqual(cm.records[0].request_log.severity, "low")

    def test_disabled_logging_emits_nothing(self):
        client = test_support.make_test_client(logging_enabled=False)
        with self.assertNoLogs(ACCESS_LOGGER, level="DEBUG"):
            response = client.get("/health")
        self.assertEqual(response.status_code, 200)

    def test_logger_does_not_consume_the_body(self):
        client = test_support.make_test_client()
        with self.assertLogs(ACCESS_LOGGER, level="INFO"):
            response = client.post("/api/data", json={"name": "a", "value": "b"})
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["data"]["name"], "a")


class TestSeverityBands(unittest.TestCase):
    def test_bands(self):
        from devops_practice.http.middleware import severity_for_status

        self.assertEqual(severity_for_status(200), "low")
        self.assertEqual(severity_for_status(299), "low")
        self.assertEqual(severity_for_status(302), "low")
        self.assertEqual(severity_for_status(400), "medium")
        self.assertEqual(severity_for_status(499), "medium")
        self.assertEqual(severity_for_status(500), "high")
        self.assertEqual(severity_for_status(599), "high")


if __name__ == "__main__":
    unittest.main()
