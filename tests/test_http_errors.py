# ruff: noqa: ANN201, ANN206, D100, D101, D102, E501, INP001, PLC0415, PT009

import unittest

import test_support


class TestHttpErrors(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        # Skips cleanly if FastAPI/TestClient (and its deps like httpx) aren't available.
        cls.FastAPI, cls.TestClient = test_support.require_fastapi()

    def _app_with_failing_routes(self, **overrides):
        from devops_practice.http.errors import AuthFault, Fault

        app = test_support.build_test_app(**overrides)

        @app.get("/boom")
        async def _boom():
            message = "kaboom"
            raise RuntimeError(message)

        @app.get("/teapot")
        async def _teapot():
            message = "short and stout"
            raise Fault(message, status_code=418, code="TEAPOT")

        @app.get("/denied")
        async def _denied():
            message = "no entry"
            raise AuthFault(message)

        return app

    def test_unmatched_route_is_json_404_for_json_clients(self):
        client = test_support.make_test_client()
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.get("/nope", headers=test_support.JSON_HEADERS)

        self.assertEqual(response.status_code, 404)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertEqual(body["error"]["code"], "NOT_FOUND")
        self.assertEqual(body["error"]["message"], "Route not found: GET /nope")
        self.assertIn("timestamp", body["error"])

    def test_not_found_message_keeps_query_string(self):
        client = test_support.make_test_client()
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.delete("/missing?x=1", headers=test_support.JSON_HEADERS)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(
            response.json()["error"]["message"],
            "Route not found: DELETE /missing?x=1",
        )

    def test_unmatched_method_on_known_path_is_404(self):
        client = test_support.make_test_client()
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.put("/health", headers=test_support.JSON_HEADERS)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json()["error"]["code"], "NOT_FOUND")

    def test_unmatched_route_is_html_for_browsers(self):
        client = test_support.make_test_client()
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.get("/nope", headers=test_support.BROWSER_HEADERS)

        self.assertEqual(response.status_code, 404)
        content_type = response.headers.get("content-type", "")
        self.assertTrue(
            content_type.startswith("text/html"),
            msg=f"expected text/html content-type, got {content_type}",
        )
        self.assertIn("Page Not Found", response.text)

    def test_wildcard_accept_gets_json(self):
        client = test_support.make_test_client()
        for headers in ({"accept": "*/*"}, {"accept": ""}):
            with self.subTest(headers=headers):
                with self.assertLogs("devops_practice.http.errors", level="ERROR"):
                    response = client.get("/nope", headers=headers)
                self.assertEqual(response.status_code, 404)
                self.assertEqual(response.json()["error"]["code"], "NOT_FOUND")

    def test_untyped_exception_is_500_with_stack_in_development(self):
        client = test_support.make_test_client(self._app_with_failing_routes())
        with self.assertLogs("devops_practice.http.errors", level="ERROR") as cm:
            response = client.get("/boom", headers=test_support.JSON_HEADERS)

        self.assertEqual(response.status_code, 500)
        error = response.json()["error"]
        self.assertEqual(error["code"], "INTERNAL_ERROR")
        self.assertEqual(error["message"], "kaboom")
        self.assertIn("RuntimeError: kaboom", error["stack"])

        record = cm.records[0]
        self.assertEqual(record.fault["method"], "GET")
        self.assertEqual(record.fault["url"], "/boom")
        self.assertIsNotNone(record.exc_info)

    def test_stack_is_hidden_outside_development(self):
        app = self._app_with_failing_routes(environment="production")
        client = test_support.make_test_client(app)
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.get("/boom", headers=test_support.JSON_HEADERS)

        self.assertEqual(response.status_code, 500)
        self.assertNotIn("stack", response.json()["error"])

    def test_untyped_exception_is_html_500_for_browsers(self):
        client = test_support.make_test_client(self._app_with_failing_routes())
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            response = client.get("/boom", headers=test_support.BROWSER_HEADERS)
        self.assertEqual(response.status_code, 500)
        self.assertIn("Something Went Wrong", response.text)
        self.assertNotIn("kaboom", response.text)

    def test_fault_status_and_code_are_used(self):
        client = test_support.make_test_client(self._app_with_failing_routes())
        with self.assertLogs("devops_practice.http.errors", level="ERROR"):
            teapot = client.get("/teapot", headers=test_support.JSON_HEADERS)

        self.assertEqual(teapot.status_code, 418)
        self.assertEqual(teapot.json()["error"]["code"], "TEAPOT")

    def test_auth_fault_renders_login_failure_page(self):
        client = test_support.make_test_client(self._app_with_failing_routes())
        for headers in (test_support.JSON_HEADERS, test_support.BROWSER_HEADERS):
            with self.subTest(headers=headers):
                with self.assertLogs("devops_practice.http.errors", level="INFO") as cm:
                    response = client.get("/denied", headers=headers)
                self.assertEqual(response.status_code, 401)
                self.assertTrue(response.headers["content-type"].startswith("text/html"))
                self.assertIn("Login Failed", response.text)
                self.assertIn("no entry", cm.output[0])

    def test_disabled_handler_returns_bare_500(self):
        app = self._app_with_failing_routes(error_handler_enabled=False)
        client = test_support.make_test_client(app)

        for path in ("/nope", "/boom", "/teapot"):
            with self.subTest(path=path):
                response = client.get(path, headers=test_support.JSON_HEADERS)
                self.assertEqual(response.status_code, 500)
                self.assertTrue(response.headers["content-type"].startswith("text/plain"))
                self.assertEqual(response.text, "Error handler is disabled")

        response = client.get("/denied")
        self.assertEqual(response.status_code, 401)
        self.assertIn("Login Failed", response.text)


class TestWantsJson(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        test_support.require_fastapi()

    def _wants_json(self, accept):
        from starlette.requests import Request

        from devops_practice.http.errors import wants_json

        headers = [] if accept is None else [(b"accept", accept.encode())]
        scope = {"type": "http", "method": "GET", "path": "/", "headers": headers}
        return wants_json(Request(scope))

    def test_accept_negotiation(self):
        self.assertTrue(self._wants_json("application/json"))
        self.assertTrue(self._wants_json("application/problem+json"))
        self.assertTrue(self._wants_json("*/*"))
        self.assertTrue(self._wants_json(None))
        self.assertTrue(self._wants_json("text/html;q=0.5, application/json"))
        self.assertTrue(self._wants_json("text/html, */*"))
        self.assertFalse(self._wants_json("text/html"))
        self.assertFalse(self._wants_json("text/html, application/json;q=0.5"))
        self.assertFalse(self._wants_json("application/json;q=0"))
        self.assertFalse(
            self._wants_json(test_support.BROWSER_HEADERS["accept"]),
        )


class TestFaults(unittest.TestCase):
    def test_defaults(self):
        from devops_practice.http.errors import (
            Fault,
            NotFoundFault,
            PayloadTooLargeFault,
            UnhandledFault,
            ValidationFault,
            as_fault,
        )

        fault = Fault()
        self.assertEqual((fault.status_code, fault.code), (500, "INTERNAL_ERROR"))
        self.assertEqual(fault.message, "Internal Server Error")
        self.assertEqual(NotFoundFault("x").status_code, 404)
        self.assertEqual(ValidationFault("x").code, "VALIDATION_ERROR")
        self.assertEqual(PayloadTooLargeFault("x").status_code, 413)

        original = KeyError()
        wrapped = as_fault(original)
        self.assertIsInstance(wrapped, UnhandledFault)
        self.assertEqual(wrapped.status_code, 500)
        self.assertIs(wrapped.original, original)
        self.assertIs(as_fault(fault), fault)


if __name__ == "__main__":
    unittest.main()
