"""OTLP gRPC exporter — converts WireSpan batches to protobuf and ships them."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import grpc
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import (
    ExportTraceServiceRequest,
)
from opentelemetry.proto.collector.trace.v1.trace_service_pb2_grpc import (
    TraceServiceStub,
)
from opentelemetry.proto.common.v1.common_pb2 import (
    AnyValue,
    InstrumentationScope,
    KeyValue,
)
from opentelemetry.proto.resource.v1.resource_pb2 import Resource
from opentelemetry.proto.trace.v1.trace_pb2 import (
    ResourceSpans,
    ScopeSpans,
)
from opentelemetry.proto.trace.v1.trace_pb2 import (
    Span as OtlpSpan,
)
from opentelemetry.proto.trace.v1.trace_pb2 import (
    Status as OtlpStatus,
)

if TYPE_CHECKING:
    from spanwire._types import LogEvent, TagValue, WireSpan

logger = logging.getLogger("spanwire.exporter")

SDK_NAME = "spanwire"
SDK_VERSION = "0.1.0"

_INT64_MIN = -(1 << 63)
_INT64_MAX = (1 << 63) - 1

_KIND_MAP: dict[str, int] = {
    "server": OtlpSpan.SPAN_KIND_SERVER,
    "client": OtlpSpan.SPAN_KIND_CLIENT,
    "producer": OtlpSpan.SPAN_KIND_PRODUCER,
    "consumer": OtlpSpan.SPAN_KIND_CONSUMER,
}


def _make_attribute(key: str, value: TagValue) -> KeyValue:
    """Convert a Python key-value pair to an OTLP KeyValue protobuf."""
    if isinstance(value, bool):
        av = AnyValue(bool_value=value)
    elif isinstance(value, int) and _INT64_MIN <= value <= _INT64_MAX:
        av = AnyValue(int_value=value)
    elif isinstance(value, float):
        av = AnyValue(double_value=value)
    else:
        av = AnyValue(string_value=str(value))
    return KeyValue(key=key, value=av)


def _id_bytes(value: int) -> bytes:
    return value.to_bytes(8, "big")


def _log_to_event(log: LogEvent) -> OtlpSpan.Event:
    """Convert a span log to an OTLP span event named after its ``event`` field."""
    name = str(log.fields.get("event", "log"))
    return OtlpSpan.Event(
        time_unix_nano=round(log.timestamp * 1_000_000_000),
        name=name,
        attributes=[_make_attribute(k, v) for k, v in log.fields.items()],
    )


def _wire_span_to_otlp(ws: WireSpan) -> OtlpSpan:
    """Convert a single WireSpan to an OTLP Span protobuf."""
    attrs = [
        _make_attribute(k, v) for k, v in ws.tags.items() if k != "span.kind"
    ]
    attrs.append(_make_attribute("spanwire.flags", ws.flags))

    status = OtlpStatus(code=OtlpStatus.STATUS_CODE_UNSET)  # type: ignore[arg-type]
    if ws.tags.get("error") is True:
        status = OtlpStatus(code=OtlpStatus.STATUS_CODE_ERROR)  # type: ignore[arg-type]

    kind = _KIND_MAP.get(str(ws.tags.get("span.kind", "")), OtlpSpan.SPAN_KIND_INTERNAL)
    parent = _id_bytes(ws.parent_span_id) if ws.parent_span_id else b""

    return OtlpSpan(
        trace_id=_id_bytes(ws.trace_id_high) + _id_bytes(ws.trace_id_low),
        span_id=_id_bytes(ws.span_id),
        parent_span_id=parent,
        name=ws.operation_name,
        kind=kind,  # type: ignore[arg-type]
        start_time_unix_nano=ws.start_time * 1000,
        end_time_unix_nano=(ws.start_time + ws.duration) * 1000,
        attributes=attrs,
        events=[_log_to_event(log) for log in ws.logs],
        status=status,
    )


def _build_export_request(
    spans: list[WireSpan],
    service_name: str,
    environment: str,
) -> ExportTraceServiceRequest:
    """Build an ExportTraceServiceRequest from a batch of WireSpans."""
    resource_attrs = [
        _make_attribute("service.name", service_name),
        _make_attribute("deployment.environment", environment),
        _make_attribute("telemetry.sdk.name", SDK_NAME),
        _make_attribute("telemetry.sdk.version", SDK_VERSION),
    ]

    resource = Resource(attributes=resource_attrs)
    scope = InstrumentationScope(name=SDK_NAME, version=SDK_VERSION)

    otlp_spans = [_wire_span_to_otlp(ws) for ws in spans]

    scope_spans = ScopeSpans(scope=scope, spans=otlp_spans)
    resource_spans = ResourceSpans(resource=resource, scope_spans=[scope_spans])

    return ExportTraceServiceRequest(resource_spans=[resource_spans])


class OTLPExporter:
    """Sends WireSpan batches over gRPC using the OTLP trace protocol.

    Used as the RemoteReporter handler. Each batch gets a single attempt;
    failures are logged and never raised so the traced service is not
    affected by collector outages.
    """

    def __init__(
        self,
        endpoint: str,
        service_name: str,
        environment: str,
        *,
        insecure: bool = True,
        timeout_s: float = 10.0,
        api_key: str | None = None,
    ) -> None:
        self._service_name = service_name
        self._environment = environment
        self._timeout_s = timeout_s
        self._metadata: list[tuple[str, str]] | None = None
        if api_key is not None:
            self._metadata = [("authorization", f"Bearer {api_key}")]

        if insecure:
            self._channel = grpc.insecure_channel(endpoint)
        else:
            self._channel = grpc.secure_channel(endpoint, grpc.ssl_channel_credentials())

        self._stub = TraceServiceStub(self._channel)  # type: ignore[no-untyped-call]

    def export(self, spans: list[WireSpan]) -> None:
        """Export a batch of spans. Logs and swallows all errors."""
        if not spans:
            return
        try:
            request = _build_export_request(
                spans, self._service_name, self._environment
            )
            self._stub.Export(request, timeout=self._timeout_s, metadata=self._metadata)
        except Exception:  # noqa: BLE001
            logger.debug("Failed to export %d spans", len(spans), exc_info=True)

    def shutdown(self) -> None:
        """Close the gRPC channel."""
        try:
            self._channel.close()
        except Exception:  # noqa: BLE001
            logger.debug("Error closing exporter channel", exc_info=True)
