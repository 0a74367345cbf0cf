from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

DEFAULT_SERVICE_NAME = "oap-backend"

logger = logging.getLogger(__name__)
_provider: TracerProvider | None = None


def _build_provider() -> TracerProvider:
    provider = TracerProvider(
        resource=Resource.create(
            {SERVICE_NAME: os.getenv("OTEL_SERVICE_NAME", DEFAULT_SERVICE_NAME)}
        )
    )
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        try:
            exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
            provider.add_span_processor(BatchSpanProcessor(exporter))
        except Exception:
            logger.exception("otel_exporter_setup_failed")
    return provider


def configure_otel(app: FastAPI) -> None:
    """Instrument ``app``; the tracer provider is installed once per process."""
    global _provider
    if _provider is None:
        _provider = _build_provider()
        trace.set_tracer_provider(_provider)
        set_global_textmap(TraceContextTextMapPropagator())
    FastAPIInstrumentor.instrument_app(app, tracer_provider=_provider)
