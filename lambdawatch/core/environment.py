"""Environment label and sampling policy.

Production traffic is sampled at a low rate to keep event volume and
overhead down; every other environment keeps full diagnostic fidelity.
"""

from .models import (
    DEFAULT_FLUSH_TIMEOUT_MS,
    DEFAULT_TIMEOUT_WARNING_LIMIT_MS,
    EventFilter,
    TelemetryConfig,
    pass_through_event,
)

DEFAULT_ENVIRONMENT = "dev"
PRODUCTION_ENVIRONMENT = "prod"
PRODUCTION_SAMPLE_RATE = 0.1
DEFAULT_SAMPLE_RATE = 1.0


def resolve_environment(
    override: str | None,
    stage: str | None,
    default: str = DEFAULT_ENVIRONMENT,
) -> str:
    """Pick the environment label: explicit override, then stage, then default.

    Blank values count as absent.
    """
    for candidate in (override, stage):
        if candidate and candidate.strip():
            return candidate.strip()
    return default


def sample_rate_for(
    environment: str,
    production_environment: str = PRODUCTION_ENVIRONMENT,
    production_rate: float = PRODUCTION_SAMPLE_RATE,
    default_rate: float = DEFAULT_SAMPLE_RATE,
) -> float:
    """Return the trace sample rate for an environment label."""
    if environment == production_environment:
        return production_rate
    return default_rate


def build_telemetry_config(
    endpoint_credential: str | None,
    environment_override: str | None = None,
    stage: str | None = None,
    *,
    default_environment: str = DEFAULT_ENVIRONMENT,
    production_environment: str = PRODUCTION_ENVIRONMENT,
    production_sample_rate: float = PRODUCTION_SAMPLE_RATE,
    default_sample_rate: float = DEFAULT_SAMPLE_RATE,
    timeout_warning_limit_ms: int = DEFAULT_TIMEOUT_WARNING_LIMIT_MS,
    flush_timeout_ms: int = DEFAULT_FLUSH_TIMEOUT_MS,
    event_filter: EventFilter = pass_through_event,
) -> TelemetryConfig:
    """Assemble a TelemetryConfig from raw environment values.

    Args:
        endpoint_credential: Backend DSN/secret. Blank means disabled.
        environment_override: Explicit environment label, if any.
        stage: Deployment stage exposed by the host platform, if any.
        default_environment: Label used when neither of the above is set.
        production_environment: Label that selects the production sample rate.
        production_sample_rate: Sample rate applied in production.
        default_sample_rate: Sample rate applied everywhere else.
        timeout_warning_limit_ms: Timeout warning threshold for wrapped handlers.
        flush_timeout_ms: Upper bound on the post-invocation flush.
        event_filter: Hook applied to every outgoing event.

    Returns:
        Validated TelemetryConfig.
    """
    environment = resolve_environment(
        environment_override, stage, default=default_environment
    )
    credential = endpoint_credential.strip() if endpoint_credential else None
    return TelemetryConfig(
        endpoint_credential=credential or None,
        environment=environment,
        sample_rate=sample_rate_for(
            environment,
            production_environment=production_environment,
            production_rate=production_sample_rate,
            default_rate=default_sample_rate,
        ),
        debug=environment != production_environment,
        timeout_warning_limit_ms=timeout_warning_limit_ms,
        flush_timeout_ms=flush_timeout_ms,
        event_filter=event_filter,
    )
