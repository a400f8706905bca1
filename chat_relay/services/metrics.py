"""Prometheus metrics instrumentation for the message pipeline.

Exposes metrics for monitoring latency, throughput and degraded steps
of the relay. Metrics are exposed via HTTP on port 8001 (configurable
through METRICS_PORT) when METRICS_ENABLED is set.

Metrics exported:
- relay_step_latency_seconds: Histogram of time spent per pipeline step
- relay_messages_processed_total: Counter of pipeline runs by outcome
- relay_degraded_steps_total: Counter of steps that fell back to a default
- relay_live_connections: Gauge of currently open live connections
- relay_fan_out_deliveries_total: Counter of events pushed to connections

Usage:
    from chat_relay.services.metrics import start_metrics_server, messages_processed

    start_metrics_server(port=8001)
    messages_processed.labels(outcome='success', mode='text').inc()
"""

from prometheus_client import Histogram, Counter, Gauge, start_http_server
import logging

logger = logging.getLogger(__name__)

# Latency tracking per pipeline step
step_latency = Histogram(
    'relay_step_latency_seconds',
    'Time spent in each pipeline step',
    labelnames=['step']  # step: transcribe, detect, translate, persist, fan_out
)

# Pipeline outcome counters
messages_processed = Counter(
    'relay_messages_processed_total',
    'Total messages run through the pipeline',
    labelnames=['outcome', 'mode']  # outcome: success, empty, invalid, transcription_error
)

# Steps that degraded to a fallback value
degraded_steps = Counter(
    'relay_degraded_steps_total',
    'Number of pipeline steps that fell back to a default value',
    labelnames=['step']
)

# Live connections gauge
live_connections_gauge = Gauge(
    'relay_live_connections',
    'Number of currently open live connections'
)

# Fan-out deliveries
fan_out_deliveries = Counter(
    'relay_fan_out_deliveries_total',
    'Number of events delivered to live connections'
)


def start_metrics_server(port: int = 8001):
    """Start Prometheus metrics HTTP server."""
    try:
        start_http_server(port)
        logger.info(f"✅ Metrics server started on port {port}")
    except Exception as e:
        logger.error(f"❌ Failed to start metrics server: {e}")
