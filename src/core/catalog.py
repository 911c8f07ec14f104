"""
Read probes run against Rekor and Fulcio on every pass, in this order.
"""
import json

from contracts.probe import ProbeDefinition

# sha256 of an entry known to exist in the public Rekor log
_INDEX_LOOKUP_HASH = (
    "sha256:2bd37672a9e472c79c64f42b95e362db16870e28a90f3b17fee8faf952e79b4b"
)

REKOR_ENDPOINTS = (
    ProbeDefinition(endpoint="/api/v1/log", method="GET"),
    ProbeDefinition(endpoint="/api/v1/log/publicKey", method="GET"),
    ProbeDefinition(
        endpoint="/api/v1/log/entries",
        method="GET",
        queries={"logIndex": "10"},
    ),
    ProbeDefinition(
        endpoint="/api/v1/log/proof",
        method="GET",
        queries={"firstSize": "10", "lastSize": "20"},
    ),
    ProbeDefinition(
        endpoint="/api/v1/log/entries/retrieve",
        method="POST",
        body=json.dumps({"logIndexes": [10]}).encode(),
    ),
    ProbeDefinition(
        endpoint="/api/v1/index/retrieve",
        method="POST",
        body=json.dumps({"hash": _INDEX_LOOKUP_HASH}).encode(),
    ),
)

FULCIO_ENDPOINTS = (
    ProbeDefinition(endpoint="/api/v1/rootCert", method="GET"),
    ProbeDefinition(endpoint="/api/v2/trustBundle", method="GET"),
    ProbeDefinition(endpoint="/api/v2/configuration", method="GET"),
)
