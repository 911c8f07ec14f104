import os


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def parse_listen_addr(addr: str):
    """
    Split a listen address such as ":8080" or "127.0.0.1:9090" into host and port.

    An empty host means all interfaces.

    Raises:
        ValueError: If the port is missing or not a valid TCP port.
    """
    host, sep, port = addr.rpartition(":")
    if not sep:
        raise ValueError(f"Listen address {addr!r} must be of the form [host]:port")
    try:
        port_num = int(port)
    except ValueError:
        raise ValueError(f"Invalid port in listen address {addr!r}")
    if not 0 < port_num < 65536:
        raise ValueError(f"Port out of range in listen address {addr!r}")
    host = host.strip("[]") or "0.0.0.0"
    return host, port_num


class Config:
    """
    Configuration class for environment variables and default settings.
    """

    FREQUENCY_SECONDS = int(os.environ.get("PROBER_FREQUENCY_SECONDS", "10"))
    # Address the Prometheus exporter listens on
    ADDR = os.environ.get("PROBER_ADDR", ":8080")

    REKOR_URL = os.environ.get("REKOR_URL", "https://rekor.sigstore.dev")
    FULCIO_URL = os.environ.get("FULCIO_URL", "https://fulcio.sigstore.dev")

    ONE_TIME = _env_bool("PROBER_ONE_TIME", False)
    WRITE_PROBER = _env_bool("PROBER_WRITE_PROBER", True)
    # An observed 5xx only fails a single-pass run when this is set
    FAIL_ON_SERVER_ERROR = _env_bool("PROBER_FAIL_ON_SERVER_ERROR", False)

    # Write prober: cosign binary and the projected OIDC token it signs with
    COSIGN_PATH = os.environ.get("COSIGN_PATH", "cosign")
    IDENTITY_TOKEN_PATH = os.environ.get(
        "PROBER_IDENTITY_TOKEN_PATH", "/var/run/sigstore/cosign/oidc-token"
    )
