"""CAMLTrace: the structured, append-only gameplay event log."""

from __future__ import annotations

from everdice.trace.caml import (
    calculate_cr,
    generate_caml_id,
    generate_event_id,
    generate_module_id,
    generate_trace_id,
    validate_caml_id,
)
from everdice.trace.events import (
    add_trace_event,
    create_empty_trace,
    end_trace_session,
    register_trace_actor,
    start_trace_session,
)
from everdice.trace.recorder import TraceRecorder
from everdice.trace.schema import (
    CAMLTrace,
    TraceActor,
    TraceCampaign,
    TraceEvent,
    TraceEventKind,
    TracePayload,
    TraceSession,
    coerce_payload,
)


__all__ = [
    # Identifiers
    "calculate_cr",
    "generate_caml_id",
    "generate_event_id",
    "generate_module_id",
    "generate_trace_id",
    "validate_caml_id",
    # Document operations
    "add_trace_event",
    "create_empty_trace",
    "end_trace_session",
    "register_trace_actor",
    "start_trace_session",
    # Recorder
    "TraceRecorder",
    # Schema
    "CAMLTrace",
    "TraceActor",
    "TraceCampaign",
    "TraceEvent",
    "TraceEventKind",
    "TracePayload",
    "TraceSession",
    "coerce_payload",
]
