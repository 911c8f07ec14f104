import json
import unittest

from core.catalog import FULCIO_ENDPOINTS, REKOR_ENDPOINTS


class TestCatalog(unittest.TestCase):
    def test_catalogs_are_immutable_sequences(self):
        self.assertIsInstance(REKOR_ENDPOINTS, tuple)
        self.assertIsInstance(FULCIO_ENDPOINTS, tuple)
        self.assertTrue(REKOR_ENDPOINTS)
        self.assertTrue(FULCIO_ENDPOINTS)

    def test_endpoints_unique_per_target(self):
        for catalog in (REKOR_ENDPOINTS, FULCIO_ENDPOINTS):
            endpoints = [p.endpoint for p in catalog]
            self.assertEqual(len(endpoints), len(set(endpoints)))

    def test_post_bodies_are_json(self):
        for probe in REKOR_ENDPOINTS + FULCIO_ENDPOINTS:
            if probe.method == "POST":
                self.assertIsInstance(json.loads(probe.body), dict)

    def test_rekor_entry_lookup_has_log_index(self):
        entries = next(p for p in REKOR_ENDPOINTS if p.endpoint == "/api/v1/log/entries")
        self.assertEqual(entries.queries, {"logIndex": "10"})

    def test_fulcio_probes_are_reads(self):
        self.assertTrue(all(p.method == "GET" for p in FULCIO_ENDPOINTS))


if __name__ == "__main__":
    unittest.main()
