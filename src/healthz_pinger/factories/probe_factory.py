from healthz_pinger.probe.health_probe import HealthProbe
from healthz_pinger.config import ProbeConfig


def create_probe(config: ProbeConfig) -> HealthProbe:
    """Instantiate the configured health probe."""
    return HealthProbe(api_key=config.api_key)
