"""Shared test fixtures and helpers.

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os

import pytest
from hypothesis import Phase, Verbosity, settings

from querytrace.contracts.plans import (
    Filter,
    LogicalRelation,
    Project,
    ReturnAnswer,
    SnowflakeRelation,
    call,
    leaf,
    schema_of,
)
from querytrace.core.logging import configure_logging

# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))


# =============================================================================
# Logging
# =============================================================================


@pytest.fixture(autouse=True)
def _route_logs_to_stderr() -> None:
    """Route structlog through stdlib at WARNING, bound to this test's captured stderr.

    Unconfigured structlog prints every level to stdout, which would mix with
    console transport output.
    """
    configure_logging(level="WARNING")


# =============================================================================
# Plan fixtures
# =============================================================================


@pytest.fixture
def snowflake_relation() -> LogicalRelation:
    """Snowflake scan with an (integer, string) schema."""
    return LogicalRelation(
        relation=SnowflakeRelation(schema=schema_of(("ID", "integer"), ("NAME", "string")), table="ORDERS"),
    )


@pytest.fixture
def filter_project_plan(snowflake_relation: LogicalRelation) -> Filter:
    """Filter -> Project -> Snowflake relation."""
    return Filter(
        condition=call("GreaterThan", leaf("AttributeReference", "integer"), leaf("Literal", "integer"), data_type="boolean"),
        child=Project(
            project_list=(leaf("AttributeReference", "integer"), leaf("AttributeReference", "string")),
            child=snowflake_relation,
        ),
    )


@pytest.fixture
def complete_plan(filter_project_plan: Filter) -> ReturnAnswer:
    """A complete query reading Snowflake."""
    return ReturnAnswer(child=filter_project_plan)
