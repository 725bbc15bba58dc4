"""Observability setup for OpenTelemetry, metrics, and structured logging."""

import logging

import structlog
from opentelemetry import metrics, trace
from opentelemetry.exporter.otlp.proto.grpc.metric_exporter import OTLPMetricExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from opentelemetry.sdk.metrics import MeterProvider
from opentelemetry.sdk.metrics.export import PeriodicExportingMetricReader
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest
from sqlalchemy.ext.asyncio import AsyncEngine

from .config import settings

SERVICE_NAME = "charter-booking-api"
SERVICE_VERSION = "1.0.0"

# Prometheus metrics
REGISTRY = CollectorRegistry()

# Request metrics
REQUEST_COUNT = Counter(
    'http_requests_total',
    'Total HTTP requests',
    ['method', 'endpoint', 'status_code'],
    registry=REGISTRY
)

REQUEST_DURATION = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    registry=REGISTRY
)

# Business metrics
BOOKINGS_CREATED = Counter(
    'charter_bookings_created_total',
    'Total bookings committed',
    registry=REGISTRY
)

SEATS_BOOKED = Counter(
    'charter_seats_booked_total',
    'Total seats reserved by committed bookings',
    registry=REGISTRY
)

CAPACITY_REJECTIONS = Counter(
    'charter_capacity_rejections_total',
    'Operations rejected because a vessel could not carry the seats',
    ['reason'],
    registry=REGISTRY
)

SCHEDULING_CONFLICTS = Counter(
    'charter_scheduling_conflicts_total',
    'Operations rejected because a vessel was already scheduled',
    ['operation'],
    registry=REGISTRY
)

DEPARTURES_SCHEDULED = Counter(
    'charter_departures_scheduled_total',
    'Total scheduled tours created',
    registry=REGISTRY
)

CONCURRENCY_CONFLICTS = Counter(
    'charter_concurrency_conflicts_total',
    'Transactions aborted by lock timeouts, deadlocks or serialization failures',
    registry=REGISTRY
)

CAPACITY_UTILIZATION = Gauge(
    'charter_departure_capacity_utilization',
    'Booked share of vessel capacity, in percent',
    ['scheduled_tour_id'],
    registry=REGISTRY
)


def setup_structured_logging():
    """Configure structured logging with structlog."""

    def add_trace_context(logger, method_name, event_dict):
        """Add trace context to log events."""
        span = trace.get_current_span()
        if span and span.is_recording():
            ctx = span.get_span_context()
            event_dict['trace_id'] = format(ctx.trace_id, '032x')
            event_dict['span_id'] = format(ctx.span_id, '016x')
        return event_dict

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_trace_context,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.ConsoleRenderer() if settings.debug else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


def _resource() -> Resource:
    return Resource.create({
        "service.name": SERVICE_NAME,
        "service.version": SERVICE_VERSION,
        "environment": settings.environment,
    })


def setup_tracing():
    """Setup OpenTelemetry tracing; spans are exported only when an OTLP endpoint is configured."""
    provider = TracerProvider(resource=_resource())

    if settings.otlp_endpoint:
        otlp_exporter = OTLPSpanExporter(endpoint=settings.otlp_endpoint)
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))

    trace.set_tracer_provider(provider)
    return trace.get_tracer(__name__)


def setup_metrics():
    """Setup OpenTelemetry metrics export alongside the Prometheus registry."""
    if settings.otlp_endpoint:
        otlp_exporter = OTLPMetricExporter(endpoint=settings.otlp_endpoint)
        reader = PeriodicExportingMetricReader(exporter=otlp_exporter, export_interval_millis=60000)
        metrics.set_meter_provider(MeterProvider(resource=_resource(), metric_readers=[reader]))

    return metrics.get_meter(__name__)


def instrument_fastapi(app):
    """Instrument FastAPI with OpenTelemetry."""
    FastAPIInstrumentor.instrument_app(app)


def instrument_sqlalchemy(engine: AsyncEngine):
    """Instrument the engine's SQL statements with OpenTelemetry."""
    SQLAlchemyInstrumentor().instrument(engine=engine.sync_engine)


class MetricsCollector:
    """Collector for business metrics."""

    @staticmethod
    def record_booking_created(passenger_count: int):
        """Record a committed booking and the seats it took."""
        BOOKINGS_CREATED.inc()
        SEATS_BOOKED.inc(passenger_count)

    @staticmethod
    def record_capacity_rejection(reason: str):
        """Record a rejection by the capacity guard."""
        CAPACITY_REJECTIONS.labels(reason=reason).inc()

    @staticmethod
    def record_scheduling_conflict(operation: str):
        """Record a rejection by the overlap detector."""
        SCHEDULING_CONFLICTS.labels(operation=operation).inc()

    @staticmethod
    def record_departure_scheduled():
        """Record a new scheduled tour."""
        DEPARTURES_SCHEDULED.inc()

    @staticmethod
    def record_concurrency_conflict():
        """Record a transaction that lost a race for row locks."""
        CONCURRENCY_CONFLICTS.inc()

    @staticmethod
    def set_capacity_utilization(scheduled_tour_id: str, booked: int, capacity: int):
        """Set capacity utilization percentage for a scheduled tour."""
        utilization = (booked / capacity) * 100 if capacity else 0.0
        CAPACITY_UTILIZATION.labels(scheduled_tour_id=scheduled_tour_id).set(utilization)


def get_prometheus_metrics():
    """Get Prometheus metrics for the /metrics endpoint."""
    return generate_latest(REGISTRY)


# Global metrics collector instance
metrics_collector = MetricsCollector()


def get_logger(name: str):
    """Get a structlog logger bound to a component name."""
    return structlog.get_logger(name).bind(component=name)
