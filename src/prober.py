import argparse
import asyncio
import contextlib
import logging
import signal
import sys

import uvicorn

from config.config import Config, parse_listen_addr
from config.logging_config import setup_logging
from contracts.probe import Target
from core.catalog import FULCIO_ENDPOINTS, REKOR_ENDPOINTS
from core.cosign_write_probe import CosignWriteProbe
from core.metrics_manager import MetricsManager
from core.observation_recorder import ObservationRecorder
from core.probe_scheduler import ProbeScheduler
from core.request_executor import RequestExecutor
from metrics_server import create_app

logger = logging.getLogger(__name__)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Probe Rekor and Fulcio endpoints and export latency metrics"
    )
    parser.add_argument(
        "--frequency",
        "--frequecy",
        dest="frequency",
        type=int,
        default=Config.FREQUENCY_SECONDS,
        help="How often to run probers (in seconds)",
    )
    parser.add_argument(
        "--addr", default=Config.ADDR, help="Address to expose Prometheus metrics on"
    )
    parser.add_argument(
        "--rekor-url",
        default=Config.REKOR_URL,
        help="Rekor URL to run probers against",
    )
    parser.add_argument(
        "--fulcio-url",
        default=Config.FULCIO_URL,
        help="Fulcio URL to run probers against",
    )
    parser.add_argument(
        "--one-time",
        action=argparse.BooleanOptionalAction,
        default=Config.ONE_TIME,
        help="Run only one pass and exit with its status",
    )
    parser.add_argument(
        "--write-prober",
        action=argparse.BooleanOptionalAction,
        default=Config.WRITE_PROBER,
        help="[Kubernetes only] run the prober for the write endpoints",
    )
    parser.add_argument(
        "--fail-on-server-error",
        action=argparse.BooleanOptionalAction,
        default=Config.FAIL_ON_SERVER_ERROR,
        help="Treat 5xx responses as failures of a single-pass run",
    )
    parser.add_argument("--cosign-path", default=Config.COSIGN_PATH)
    parser.add_argument("--identity-token-path", default=Config.IDENTITY_TOKEN_PATH)
    return parser


def parse_args(argv=None) -> argparse.Namespace:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.frequency <= 0:
        parser.error("--frequency must be a positive number of seconds")
    try:
        args.host, args.port = parse_listen_addr(args.addr)
    except ValueError as e:
        parser.error(str(e))
    return args


def build_scheduler(args, executor: RequestExecutor, metrics_manager: MetricsManager):
    catalogs = [
        (Target(name="rekor", url=args.rekor_url), REKOR_ENDPOINTS),
        (Target(name="fulcio", url=args.fulcio_url), FULCIO_ENDPOINTS),
    ]
    write_probe = None
    if args.write_prober:
        write_probe = CosignWriteProbe(
            fulcio_url=args.fulcio_url,
            rekor_url=args.rekor_url,
            identity_token_path=args.identity_token_path,
            cosign_path=args.cosign_path,
        )
    return ProbeScheduler(
        executor,
        ObservationRecorder(metrics_manager),
        catalogs,
        write_probe=write_probe,
        interval_seconds=args.frequency,
        one_time=args.one_time,
        fail_on_server_error=args.fail_on_server_error,
    )


class ProberServer(uvicorn.Server):
    """
    uvicorn server that leaves SIGINT/SIGTERM to the prober instead of re-raising them on exit.
    """

    @contextlib.contextmanager
    def capture_signals(self):
        yield


SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(server: uvicorn.Server, scheduler: ProbeScheduler):
    loop = asyncio.get_running_loop()

    def shutdown(sig):
        logger.info(f"Received {sig.name}; shutting down.")
        server.should_exit = True
        scheduler.stop()

    for sig in SHUTDOWN_SIGNALS:
        loop.add_signal_handler(sig, shutdown, sig)


def remove_signal_handlers():
    loop = asyncio.get_running_loop()
    for sig in SHUTDOWN_SIGNALS:
        loop.remove_signal_handler(sig)


async def serve(args) -> int:
    metrics_manager = MetricsManager()
    executor = RequestExecutor()
    scheduler = build_scheduler(args, executor, metrics_manager)
    server = ProberServer(
        uvicorn.Config(
            create_app(metrics_manager),
            host=args.host,
            port=args.port,
            log_config=None,
        )
    )

    install_signal_handlers(server, scheduler)
    server_task = asyncio.create_task(server.serve())
    scheduler_task = asyncio.create_task(scheduler.run())
    try:
        done, _ = await asyncio.wait(
            {server_task, scheduler_task}, return_when=asyncio.FIRST_COMPLETED
        )
        if scheduler_task in done:
            server.should_exit = True
            await server_task
            return scheduler_task.result()

        # Server exited first: a shutdown signal or a failure to bind
        logger.info("Metrics server stopped; stopping probe loop.")
        scheduler.stop()
        scheduler_task.cancel()
        try:
            await scheduler_task
        except asyncio.CancelledError:
            pass
        server_task.result()
        return 0
    finally:
        remove_signal_handlers()
        await executor.aclose()


def main(argv=None):
    args = parse_args(argv)
    setup_logging()
    logger.info(
        f"Starting prober: rekor={args.rekor_url} fulcio={args.fulcio_url} "
        f"frequency={args.frequency}s addr={args.host}:{args.port} "
        f"one_time={args.one_time} write_prober={args.write_prober}"
    )
    sys.exit(asyncio.run(serve(args)))


if __name__ == "__main__":
    main()
