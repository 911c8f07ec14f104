import asyncio
import logging
from typing import Optional, Sequence, Tuple

from abstractions.write_probe import WriteProbe, WriteProbeError
from contracts.observation import PassResult
from contracts.probe import ProbeDefinition, Target
from core.observation_recorder import ObservationRecorder
from core.request_executor import RequestExecutor

logger = logging.getLogger(__name__)

# A target paired with the read probes executed against it
TargetCatalog = Tuple[Target, Sequence[ProbeDefinition]]


class ProbeScheduler:
    """
    Drives passes over the probe catalogs and decides when the prober stops.

    Probes run strictly one after another, in catalog order. A failing probe never
    aborts a pass: it is recorded and logged, and the pass carries on.
    """

    def __init__(
        self,
        executor: RequestExecutor,
        recorder: ObservationRecorder,
        catalogs: Sequence[TargetCatalog],
        write_probe: Optional[WriteProbe] = None,
        interval_seconds: float = 10,
        one_time: bool = False,
        fail_on_server_error: bool = False,
    ):
        """
        Args:
            executor (RequestExecutor): Sends the read probes.
            recorder (ObservationRecorder): Records every outcome.
            catalogs (Sequence[TargetCatalog]): Targets and their probes, in pass order.
            write_probe (Optional[WriteProbe]): Run once at the end of every pass when set.
            interval_seconds (float): Sleep between passes in continuous mode.
            one_time (bool): Run a single pass and report an exit code.
            fail_on_server_error (bool): Count observed 5xx responses as pass failures.
        """
        self.executor = executor
        self.recorder = recorder
        self.catalogs = list(catalogs)
        self.write_probe = write_probe
        self.interval_seconds = interval_seconds
        self.one_time = one_time
        self.fail_on_server_error = fail_on_server_error
        self.passes_completed = 0
        self._stop_event = asyncio.Event()

    async def run_pass(self) -> PassResult:
        result = PassResult()
        for target, probes in self.catalogs:
            for probe in probes:
                outcome = await self.executor.execute(target.url, probe)
                self.recorder.record(target.url, probe, outcome)
                result.observations += 1
                if outcome.failed:
                    result.had_error = True
                elif outcome.server_error:
                    logger.warning(
                        f"Server error from {target.name} {probe.endpoint}: "
                        f"status={outcome.status_code}"
                    )
                    if self.fail_on_server_error:
                        result.had_error = True

        if self.write_probe is not None:
            try:
                await self.write_probe.run()
            except WriteProbeError as e:
                result.had_error = True
                logger.error(f"Error running write prober: {e}")

        self.passes_completed += 1
        logger.info("Complete")
        return result

    async def run(self) -> int:
        """
        Run passes until told to stop.

        Returns:
            int: In single-pass mode, 0 if the pass had no failures and 1 otherwise.
                In continuous mode, 0 once stop() has been called.
        """
        while True:
            result = await self.run_pass()
            if self.one_time:
                logger.info(
                    f"Single pass finished: observations={result.observations}, "
                    f"had_error={result.had_error}"
                )
                return result.exit_code
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.interval_seconds
                )
            except asyncio.TimeoutError:
                continue
            logger.info("Probe loop stopped.")
            return 0

    def stop(self):
        self._stop_event.set()
