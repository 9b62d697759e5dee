"""Tests for the OTLP gRPC exporter."""

from __future__ import annotations

import threading
from concurrent import futures

import grpc
import pytest
from opentelemetry.proto.collector.trace.v1.trace_service_pb2 import (
    ExportTraceServiceRequest,
    ExportTraceServiceResponse,
)
from opentelemetry.proto.collector.trace.v1.trace_service_pb2_grpc import (
    TraceServiceServicer,
    add_TraceServiceServicer_to_server,
)
from opentelemetry.proto.trace.v1.trace_pb2 import Span as OtlpSpan
from opentelemetry.proto.trace.v1.trace_pb2 import Status as OtlpStatus

from spanwire._exporter import (
    OTLPExporter,
    _build_export_request,
    _make_attribute,
    _wire_span_to_otlp,
)
from spanwire._types import LogEvent, WireSpan


def _make_wire_span(**overrides: object) -> WireSpan:
    """Create a WireSpan with sensible defaults."""
    defaults: dict[str, object] = {
        "trace_id_low": 0x0123456789ABCDEF,
        "trace_id_high": 0,
        "span_id": 0xABCDEF0123456789,
        "parent_span_id": 0,
        "operation_name": "test-span",
        "flags": 1,
        "start_time": 1_000_000,
        "duration": 1_000_000,
        "tags": {},
        "logs": (),
    }
    defaults.update(overrides)
    return WireSpan(**defaults)  # type: ignore[arg-type]


class TestMakeAttribute:
    def test_string(self) -> None:
        kv = _make_attribute("key", "value")
        assert kv.key == "key"
        assert kv.value.string_value == "value"

    def test_int(self) -> None:
        kv = _make_attribute("key", 42)
        assert kv.value.int_value == 42

    def test_float(self) -> None:
        kv = _make_attribute("key", 3.14)
        assert kv.value.double_value == pytest.approx(3.14)

    def test_bool_is_not_int(self) -> None:
        assert _make_attribute("key", True).value.HasField("bool_value")
        assert _make_attribute("key", 1).value.HasField("int_value")

    def test_int_outside_int64_becomes_string(self) -> None:
        kv = _make_attribute("peer.id", 2**64 - 1)
        assert kv.value.string_value == "18446744073709551615"

    def test_int64_bounds_stay_int(self) -> None:
        assert _make_attribute("k", 2**63 - 1).value.int_value == 2**63 - 1
        assert _make_attribute("k", -(2**63)).value.int_value == -(2**63)


class TestWireSpanToOtlp:
    def test_basic_fields(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span())
        assert otlp.name == "test-span"
        assert otlp.start_time_unix_nano == 1_000_000_000
        assert otlp.end_time_unix_nano == 2_000_000_000

    def test_trace_id_bytes(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(trace_id_high=1))
        assert otlp.trace_id == bytes.fromhex("00000000000000010123456789abcdef")
        assert len(otlp.trace_id) == 16

    def test_span_id_bytes(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span())
        assert otlp.span_id == bytes.fromhex("abcdef0123456789")

    def test_parent_span_id_present(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(parent_span_id=0x1234567890ABCDEF))
        assert otlp.parent_span_id == bytes.fromhex("1234567890abcdef")

    def test_root_has_no_parent(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(parent_span_id=0))
        assert otlp.parent_span_id == b""

    def test_flags_attribute(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(flags=3))
        attr_dict = {a.key: a.value for a in otlp.attributes}
        assert attr_dict["spanwire.flags"].int_value == 3

    def test_tags_become_attributes(self) -> None:
        otlp = _wire_span_to_otlp(
            _make_wire_span(tags={"http.method": "GET", "http.status_code": 200})
        )
        attr_dict = {a.key: a.value for a in otlp.attributes}
        assert attr_dict["http.method"].string_value == "GET"
        assert attr_dict["http.status_code"].int_value == 200

    def test_span_kind_from_tag(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(tags={"span.kind": "server"}))
        assert otlp.kind == OtlpSpan.SPAN_KIND_SERVER
        assert "span.kind" not in {a.key for a in otlp.attributes}

    def test_span_kind_default_internal(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span())
        assert otlp.kind == OtlpSpan.SPAN_KIND_INTERNAL

    def test_error_tag_sets_status(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span(tags={"error": True}))
        assert otlp.status.code == OtlpStatus.STATUS_CODE_ERROR

    def test_status_unset_by_default(self) -> None:
        otlp = _wire_span_to_otlp(_make_wire_span())
        assert otlp.status.code == OtlpStatus.STATUS_CODE_UNSET

    def test_logs_become_events(self) -> None:
        log = LogEvent(timestamp=2.5, fields={"event": "retry", "attempt": 2})
        otlp = _wire_span_to_otlp(_make_wire_span(logs=(log,)))
        [event] = otlp.events
        assert event.name == "retry"
        assert event.time_unix_nano == 2_500_000_000
        attr_dict = {a.key: a.value for a in event.attributes}
        assert attr_dict["attempt"].int_value == 2


class TestBuildExportRequest:
    def test_resource_attributes(self) -> None:
        req = _build_export_request([_make_wire_span()], "my-svc", "prod")
        assert len(req.resource_spans) == 1
        resource = req.resource_spans[0].resource
        attr_dict = {a.key: a.value.string_value for a in resource.attributes}
        assert attr_dict["service.name"] == "my-svc"
        assert attr_dict["deployment.environment"] == "prod"
        assert attr_dict["telemetry.sdk.name"] == "spanwire"

    def test_all_spans_in_batch(self) -> None:
        spans = [_make_wire_span(operation_name=f"span-{i}") for i in range(5)]
        req = _build_export_request(spans, "svc", "dev")
        otlp_spans = req.resource_spans[0].scope_spans[0].spans
        assert {s.name for s in otlp_spans} == {f"span-{i}" for i in range(5)}

    def test_unsigned_64_bit_tag_does_not_lose_batch(self) -> None:
        spans = [
            _make_wire_span(operation_name="good"),
            _make_wire_span(operation_name="wide", tags={"peer.id": 2**64 - 1}),
        ]
        req = _build_export_request(spans, "svc", "dev")
        otlp_spans = req.resource_spans[0].scope_spans[0].spans
        assert [s.name for s in otlp_spans] == ["good", "wide"]
        attr_dict = {a.key: a.value for a in otlp_spans[1].attributes}
        assert attr_dict["peer.id"].string_value == str(2**64 - 1)


class TestOTLPExporter:
    def test_export_empty_batch(self) -> None:
        exporter = OTLPExporter("localhost:4317", "svc", "dev")
        exporter.export([])
        exporter.shutdown()

    def test_graceful_failure_bad_endpoint(self) -> None:
        exporter = OTLPExporter("localhost:1", "svc", "dev", timeout_s=0.1)
        exporter.export([_make_wire_span()])
        exporter.shutdown()

    def test_shutdown_idempotent(self) -> None:
        exporter = OTLPExporter("localhost:4317", "svc", "dev")
        exporter.shutdown()
        exporter.shutdown()


class _CollectorServicer(TraceServiceServicer):
    """In-process gRPC servicer that keeps every ExportTraceServiceRequest."""

    def __init__(self) -> None:
        self.requests: list[ExportTraceServiceRequest] = []
        self._lock = threading.Lock()

    def Export(  # noqa: N802
        self,
        request: ExportTraceServiceRequest,
        context: grpc.ServicerContext,
    ) -> ExportTraceServiceResponse:
        with self._lock:
            self.requests.append(request)
        return ExportTraceServiceResponse()


def test_export_received_by_server() -> None:
    servicer = _CollectorServicer()
    server = grpc.server(futures.ThreadPoolExecutor(max_workers=2))
    add_TraceServiceServicer_to_server(servicer, server)
    port = server.add_insecure_port("localhost:0")
    server.start()

    try:
        exporter = OTLPExporter(f"localhost:{port}", "test-svc", "staging", timeout_s=5.0)
        exporter.export(
            [
                _make_wire_span(operation_name="op-1"),
                _make_wire_span(operation_name="op-2", span_id=0x1234567890ABCDEF),
            ]
        )
        exporter.shutdown()

        assert len(servicer.requests) == 1
        otlp_spans = servicer.requests[0].resource_spans[0].scope_spans[0].spans
        assert {s.name for s in otlp_spans} == {"op-1", "op-2"}
    finally:
        server.stop(grace=1)
