"""
querytrace: plan and pushdown telemetry for a Spark to Snowflake connector.

Captures query plan shapes, pushdown failures and client metadata as
structured events and relays them to the remote telemetry endpoint in
fire-and-forget batches.
"""

__version__ = "2.16.0"
