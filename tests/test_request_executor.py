import asyncio
import unittest

import httpx

from contracts.observation import ErrorKind
from contracts.probe import ProbeDefinition
from core.request_executor import RequestExecutor, build_url


class TestBuildUrl(unittest.TestCase):
    def test_joins_host_and_endpoint(self):
        probe = ProbeDefinition(endpoint="/api/v1/log")
        self.assertEqual(
            str(build_url("https://rekor.example", probe)),
            "https://rekor.example/api/v1/log",
        )

    def test_appends_queries(self):
        probe = ProbeDefinition(
            endpoint="/api/v1/log/proof",
            queries={"firstSize": "10", "lastSize": "20"},
        )
        url = build_url("https://rekor.example", probe)
        self.assertEqual(url.params.get("firstSize"), "10")
        self.assertEqual(url.params.get("lastSize"), "20")

    def test_duplicate_keys_append_rather_than_overwrite(self):
        probe = ProbeDefinition(endpoint="/search?tag=a", queries={"tag": "b"})
        url = build_url("http://host", probe)
        self.assertEqual(url.params.get_list("tag"), ["a", "b"])

    def test_query_values_are_encoded(self):
        probe = ProbeDefinition(endpoint="/lookup", queries={"q": "a b&c"})
        url = build_url("http://host", probe)
        self.assertEqual(url.params.get("q"), "a b&c")
        self.assertNotIn(" ", str(url))


class TestRequestExecutor(unittest.IsolatedAsyncioTestCase):
    def _executor(self, handler):
        self.client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        return RequestExecutor(self.client)

    async def asyncTearDown(self):
        await self.client.aclose()

    async def test_success_reports_status_and_latency(self):
        async def handler(request):
            await asyncio.sleep(0.006)
            return httpx.Response(200, json={"ok": True})

        executor = self._executor(handler)
        outcome = await executor.execute(
            "http://rekor.test", ProbeDefinition(endpoint="/ping")
        )
        self.assertEqual(outcome.status_code, 200)
        self.assertIsNone(outcome.error)
        self.assertFalse(outcome.failed)
        self.assertGreaterEqual(outcome.latency_ms, 5)
        self.assertEqual(outcome.endpoint, "/ping")
        self.assertEqual(outcome.host, "http://rekor.test")

    async def test_get_sends_json_content_type_and_body(self):
        seen = {}

        def handler(request):
            seen["method"] = request.method
            seen["content_type"] = request.headers.get("content-type")
            seen["body"] = request.content
            seen["url"] = str(request.url)
            return httpx.Response(204)

        executor = self._executor(handler)
        probe = ProbeDefinition(
            endpoint="/api/v1/log/entries",
            method="get",
            queries={"logIndex": "10"},
            body=b'{"x": 1}',
        )
        await executor.execute("http://rekor.test", probe)
        self.assertEqual(seen["method"], "GET")
        self.assertEqual(seen["content_type"], "application/json")
        self.assertEqual(seen["body"], b'{"x": 1}')
        self.assertEqual(seen["url"], "http://rekor.test/api/v1/log/entries?logIndex=10")

    async def test_server_error_is_an_observation_not_an_error(self):
        executor = self._executor(lambda request: httpx.Response(500, text="boom"))
        outcome = await executor.execute(
            "http://fulcio.test", ProbeDefinition(endpoint="/api/v1/rootCert")
        )
        self.assertEqual(outcome.status_code, 500)
        self.assertFalse(outcome.failed)
        self.assertTrue(outcome.server_error)

    async def test_client_error_is_an_observation_not_an_error(self):
        executor = self._executor(lambda request: httpx.Response(404))
        outcome = await executor.execute(
            "http://fulcio.test", ProbeDefinition(endpoint="/missing")
        )
        self.assertEqual(outcome.status_code, 404)
        self.assertFalse(outcome.failed)
        self.assertFalse(outcome.server_error)

    async def test_transport_failure_has_no_status_code(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        executor = self._executor(handler)
        outcome = await executor.execute(
            "http://down.test", ProbeDefinition(endpoint="/api/v1/log")
        )
        self.assertIsNone(outcome.status_code)
        self.assertEqual(outcome.error, ErrorKind.TRANSPORT_ERROR)
        self.assertTrue(outcome.failed)
        self.assertIn("connection refused", outcome.error_message)
        self.assertGreaterEqual(outcome.latency_ms, 0)

    async def test_timeout_is_a_transport_failure(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        executor = self._executor(handler)
        outcome = await executor.execute(
            "http://slow.test", ProbeDefinition(endpoint="/api/v1/log")
        )
        self.assertEqual(outcome.error, ErrorKind.TRANSPORT_ERROR)


class TestRequestExecutorClientOwnership(unittest.IsolatedAsyncioTestCase):
    async def test_injected_client_is_not_closed(self):
        client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200))
        )
        executor = RequestExecutor(client)
        await executor.aclose()
        self.assertFalse(client.is_closed)
        await client.aclose()

    async def test_owned_client_is_closed(self):
        executor = RequestExecutor()
        await executor.aclose()
        self.assertTrue(executor.client.is_closed)


if __name__ == "__main__":
    unittest.main()
