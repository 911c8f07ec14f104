from contracts.observation import ObservationOutcome
from contracts.probe import ProbeDefinition
from core.metrics_manager import (
    ENDPOINT_LABEL,
    HOST_LABEL,
    STATUS_CODE_LABEL,
    MetricsManager,
)

# status_code label value for requests that never got a response
NO_STATUS_CODE = ""


def observation_labels(host: str, probe: ProbeDefinition, outcome: ObservationOutcome):
    status = (
        str(outcome.status_code) if outcome.status_code is not None else NO_STATUS_CODE
    )
    return {
        ENDPOINT_LABEL: probe.endpoint,
        STATUS_CODE_LABEL: status,
        HOST_LABEL: host,
    }


class ObservationRecorder:
    """
    Turns executor outcomes into labelled latency samples.
    """

    def __init__(self, metrics_manager: MetricsManager):
        self.metrics_manager = metrics_manager

    def record(self, host: str, probe: ProbeDefinition, outcome: ObservationOutcome):
        """
        Record one outcome. Called exactly once per executed request, transport
        failures included, since time spent failing is still signal.
        """
        labels = observation_labels(host, probe, outcome)
        self.metrics_manager.observe(labels, outcome.latency_ms)
