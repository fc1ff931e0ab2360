"""OpenTelemetry + Prometheus fallback wiring for the Spectator server."""
from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any

from fastapi import FastAPI

from spectator import config

logger = logging.getLogger("spectator.observability")

_PARSES = ("spectator_session_parses_total", "Count of session transcripts parsed into timelines")
_PARSE_LATENCY = ("spectator_session_parse_latency_ms", "Latency for parsing a transcript and building its indexes")
_PARSER_FAILURES = ("spectator_parser_failures_total", "Count of transcript lines that failed to parse")
_BACKUP_FETCHES = ("spectator_backup_fetches_total", "Backup content fetch outcomes")

_initialized = False
_enabled = False
_tracer: Any | None = None
_providers: list[Any] = []
_instrumentor: Any | None = None

# OTel instruments, keyed by metric name
_otel_metrics: dict[str, Any] = {}
# Prometheus collectors, keyed by metric name
_prom_metrics: dict[str, Any] = {}


def _signal_endpoint(base_endpoint: str, signal_path: str) -> str:
    """Append `/v1/traces` or `/v1/metrics` unless the base already ends with it."""
    endpoint = (base_endpoint or "").strip().rstrip("/")
    if not endpoint or endpoint.endswith(signal_path):
        return endpoint
    if endpoint.endswith("/v1"):
        endpoint = endpoint[: -len("/v1")]
    return f"{endpoint}{signal_path}"


def _label(value: str) -> str:
    return (value or "").strip() or "unknown"


def _setup_otel() -> bool:
    global _tracer, _instrumentor

    try:
        from opentelemetry import metrics, trace
        from opentelemetry.exporter.otlp.proto.http.metric_exporter import OTLPMetricExporter
        from opentelemetry.exporter.otlp.proto.http.trace_exporter import OTLPSpanExporter
        from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
        from opentelemetry.sdk.metrics import MeterProvider
        from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
        from opentelemetry.sdk.resources import Resource
        from opentelemetry.sdk.trace import TracerProvider
        from opentelemetry.sdk.trace.export import BatchSpanProcessor
    except ImportError as exc:
        logger.warning("OpenTelemetry dependencies unavailable: %s", exc)
        return False

    resource = Resource.create({
        "service.name": config.OTEL_SERVICE_NAME or "spectator",
        "service.namespace": "spectator",
    })

    tracer_provider = TracerProvider(resource=resource)
    span_exporter = OTLPSpanExporter(endpoint=_signal_endpoint(config.OTEL_ENDPOINT, "/v1/traces") or None)
    tracer_provider.add_span_processor(BatchSpanProcessor(span_exporter))
    trace.set_tracer_provider(tracer_provider)

    metric_exporter = OTLPMetricExporter(endpoint=_signal_endpoint(config.OTEL_ENDPOINT, "/v1/metrics") or None)
    meter_provider = MeterProvider(
        resource=resource,
        metric_readers=[PeriodicExportingMetricReader(metric_exporter)],
    )
    metrics.set_meter_provider(meter_provider)

    meter = metrics.get_meter("spectator.server")
    for name, description in (_PARSES, _PARSER_FAILURES, _BACKUP_FETCHES):
        _otel_metrics[name] = meter.create_counter(name, unit="1", description=description)
    _otel_metrics[_PARSE_LATENCY[0]] = meter.create_histogram(
        _PARSE_LATENCY[0], unit="ms", description=_PARSE_LATENCY[1]
    )

    _providers.extend([meter_provider, tracer_provider])
    _tracer = trace.get_tracer("spectator.server")
    _instrumentor = FastAPIInstrumentor()
    return True


def _setup_prometheus() -> None:
    try:
        from prometheus_client import Counter, Histogram, start_http_server

        start_http_server(config.PROM_PORT)
        _prom_metrics[_PARSES[0]] = Counter(*_PARSES, ["result"])
        _prom_metrics[_PARSE_LATENCY[0]] = Histogram(*_PARSE_LATENCY, ["result"])
        _prom_metrics[_PARSER_FAILURES[0]] = Counter(*_PARSER_FAILURES, ["parser"])
        _prom_metrics[_BACKUP_FETCHES[0]] = Counter(*_BACKUP_FETCHES, ["result"])
    except Exception as exc:  # noqa: BLE001
        logger.warning("Prometheus fallback not started: %s", exc)
        _prom_metrics.clear()
        return
    logger.info("Prometheus fallback metrics server listening on port %s", config.PROM_PORT)


def initialize(app: FastAPI | None = None) -> None:
    global _initialized, _enabled

    if _initialized:
        if _enabled and app is not None and _instrumentor is not None:
            _instrumentor.instrument_app(app)
        return
    _initialized = True

    if not config.OTEL_ENABLED:
        logger.info("OpenTelemetry disabled (SPECTATOR_OTEL_ENABLED=false)")
        return
    if not _setup_otel():
        return

    _enabled = True
    if app is not None:
        _instrumentor.instrument_app(app)
    if config.PROM_PORT > 0:
        _setup_prometheus()
    logger.info("OpenTelemetry initialized (service=%s endpoint=%s)", config.OTEL_SERVICE_NAME, config.OTEL_ENDPOINT)


def shutdown(app: FastAPI | None = None) -> None:
    global _enabled
    if not _enabled:
        return
    if app is not None and _instrumentor is not None:
        try:
            _instrumentor.uninstrument_app(app)
        except Exception as exc:  # noqa: BLE001
            logger.debug("FastAPI uninstrument failed: %s", exc)
    for provider in _providers:
        try:
            provider.shutdown()
        except Exception as exc:  # noqa: BLE001
            logger.debug("Telemetry provider shutdown failed: %s", exc)
    _enabled = False


@contextmanager
def start_span(name: str, attributes: dict[str, Any] | None = None):
    if not _enabled or _tracer is None:
        yield None
        return
    with _tracer.start_as_current_span(name) as span:
        for key, value in (attributes or {}).items():
            if value is not None:
                span.set_attribute(key, value)
        yield span


def _add(name: str, amount: float, **labels: str) -> None:
    if _enabled and name in _otel_metrics:
        _otel_metrics[name].add(amount, labels)
    if name in _prom_metrics:
        _prom_metrics[name].labels(**labels).inc(amount)


def record_session_parse(result: str, duration_ms: float) -> None:
    _add(_PARSES[0], 1, result=_label(result))
    latency = max(0.0, float(duration_ms))
    name = _PARSE_LATENCY[0]
    if _enabled and name in _otel_metrics:
        _otel_metrics[name].record(latency, {"result": _label(result)})
    if name in _prom_metrics:
        _prom_metrics[name].labels(result=_label(result)).observe(latency)


def record_parser_failure(parser: str, count: int = 1) -> None:
    count = max(0, int(count))
    if count:
        _add(_PARSER_FAILURES[0], count, parser=_label(parser))


def record_backup_fetch(result: str) -> None:
    _add(_BACKUP_FETCHES[0], 1, result=_label(result))
