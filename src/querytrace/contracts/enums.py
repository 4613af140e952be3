# src/querytrace/contracts/enums.py
"""Enumerations shared across the telemetry boundary.

The string values are part of the wire format and MUST NOT change: the
receiving telemetry service keys its dashboards on them.
"""

from enum import StrEnum


class TelemetryEventKind(StrEnum):
    """Type tag of a structured telemetry event.

    Values:
        SPARK_PLAN: Canonical shape of a query plan that touched Snowflake
        SPARK_STREAMING: Periodic streaming progress report
        SPARK_STREAMING_START: Streaming query started
        SPARK_STREAMING_END: Streaming query stopped
        SPARK_EGRESS: Data egress measurement
        SPARK_CLIENT_INFO: One-time client environment report
        SPARK_PUSHDOWN_FAIL: Query pushdown failed for an unexpected reason
    """

    SPARK_PLAN = "spark_plan"
    SPARK_STREAMING = "spark_streaming"
    SPARK_STREAMING_START = "spark_streaming_start"
    SPARK_STREAMING_END = "spark_streaming_end"
    SPARK_EGRESS = "spark_egress"
    SPARK_CLIENT_INFO = "spark_client_info"
    SPARK_PUSHDOWN_FAIL = "spark_pushdown_fail"
