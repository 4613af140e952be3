# src/querytrace/contracts/plans.py
"""Read-only model of the query planner's logical plan tree.

The planner owns these trees; telemetry only walks them. Node kinds mirror
the logical operators the connector's pushdown planner understands, plus a
generic PlanNode for operators telemetry has no special handling for.

Every node exposes:
- node_name: operator name used as the telemetry "action"
- children: ordered child plans
- arg_string: one-line rendering of the node's non-child arguments
- tree_string(): multi-line dump of the whole subtree (also str(plan))
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from enum import StrEnum
from typing import Any, ClassVar

# =============================================================================
# Expressions
# =============================================================================


@dataclass(frozen=True)
class Expression:
    """A node of an expression tree.

    Attributes:
        name: Operator or leaf name (e.g. "And", "AttributeReference")
        children: Operand expressions, in planner order
        data_type: Result type name (e.g. "integer", "string")
    """

    name: str
    children: tuple[Expression, ...] = ()
    data_type: str = "null"

    @property
    def node_name(self) -> str:
        return self.name

    def __str__(self) -> str:
        if not self.children:
            return self.name
        return f"{self.name}({', '.join(str(child) for child in self.children)})"


# =============================================================================
# Relations and schemas
# =============================================================================


@dataclass(frozen=True)
class StructField:
    """A single column of a relation schema."""

    name: str
    data_type: str
    nullable: bool = True


class BaseRelation:
    """A data source a LogicalRelation reads from."""

    schema: tuple[StructField, ...]


@dataclass(frozen=True)
class SnowflakeRelation(BaseRelation):
    """Relation backed by a Snowflake table or query (backend-native)."""

    schema: tuple[StructField, ...]
    table: str = ""

    def __str__(self) -> str:
        return f"SnowflakeRelation({self.table})" if self.table else "SnowflakeRelation"


@dataclass(frozen=True)
class FileRelation(BaseRelation):
    """Relation backed by files read by the engine itself."""

    path: str
    schema: tuple[StructField, ...] = ()

    def __str__(self) -> str:
        return f"FileRelation({self.path})"


# =============================================================================
# Logical plans
# =============================================================================


class JoinType(StrEnum):
    """Join kinds, rendered with the planner's own spelling."""

    INNER = "Inner"
    LEFT_OUTER = "LeftOuter"
    RIGHT_OUTER = "RightOuter"
    FULL_OUTER = "FullOuter"
    LEFT_SEMI = "LeftSemi"
    LEFT_ANTI = "LeftAnti"
    CROSS = "Cross"


def _format_arg(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, tuple | list):
        return "[" + ", ".join(_format_arg(item) for item in value) + "]"
    return str(value)


class LogicalPlan:
    """Base class of every logical plan node.

    Subclasses are frozen dataclasses and list the names of their child
    fields in _child_fields. A child field holds either a single plan or a
    sequence of plans.
    """

    _child_fields: ClassVar[tuple[str, ...]] = ("child",)

    @property
    def node_name(self) -> str:
        return type(self).__name__

    @property
    def children(self) -> tuple[LogicalPlan, ...]:
        result: list[LogicalPlan] = []
        for name in self._child_fields:
            value = getattr(self, name)
            if isinstance(value, LogicalPlan):
                result.append(value)
            else:
                result.extend(value)
        return tuple(result)

    @property
    def arg_string(self) -> str:
        """Render the non-child constructor arguments, comma separated."""
        parts = []
        for field in fields(self):  # type: ignore[arg-type]
            if field.name in self._child_fields:
                continue
            value = getattr(self, field.name)
            if value is None:
                continue
            parts.append(_format_arg(value))
        return ", ".join(parts)

    def tree_string(self) -> str:
        """Render the subtree one node per line with ':- ' / '+- ' connectors."""
        lines: list[str] = []
        self._append_tree(lines, prefix="", connector="")
        return "\n".join(lines)

    def _append_tree(self, lines: list[str], prefix: str, connector: str) -> None:
        header = f"{self.node_name} {self.arg_string}".rstrip()
        lines.append(f"{prefix}{connector}{header}")
        if connector == ":- ":
            prefix += ":  "
        elif connector == "+- ":
            prefix += "   "
        children = self.children
        for index, child in enumerate(children):
            child._append_tree(lines, prefix, "+- " if index == len(children) - 1 else ":- ")

    def __str__(self) -> str:
        return self.tree_string()


@dataclass(frozen=True)
class PlanNode(LogicalPlan):
    """Any operator without a dedicated node class.

    Attributes:
        name: Operator name reported as node_name
        child_plans: Ordered children
        args: Pre-rendered argument string
    """

    _child_fields: ClassVar[tuple[str, ...]] = ("child_plans",)

    name: str
    child_plans: tuple[LogicalPlan, ...] = ()
    args: str = ""

    @property
    def node_name(self) -> str:
        return self.name

    @property
    def arg_string(self) -> str:
        return self.args


@dataclass(frozen=True)
class ReturnAnswer(LogicalPlan):
    """Marks the root of a complete, user-visible query."""

    child: LogicalPlan


@dataclass(frozen=True)
class LogicalRelation(LogicalPlan):
    """Leaf that scans a relation."""

    _child_fields: ClassVar[tuple[str, ...]] = ()

    relation: BaseRelation


@dataclass(frozen=True)
class Filter(LogicalPlan):
    condition: Expression
    child: LogicalPlan


@dataclass(frozen=True)
class Project(LogicalPlan):
    project_list: tuple[Expression, ...]
    child: LogicalPlan


@dataclass(frozen=True)
class Join(LogicalPlan):
    _child_fields: ClassVar[tuple[str, ...]] = ("left", "right")

    left: LogicalPlan
    right: LogicalPlan
    join_type: JoinType
    condition: Expression | None = None


@dataclass(frozen=True)
class Aggregate(LogicalPlan):
    grouping_expressions: tuple[Expression, ...]
    aggregate_expressions: tuple[Expression, ...]
    child: LogicalPlan


@dataclass(frozen=True)
class Limit(LogicalPlan):
    limit_expr: Expression
    child: LogicalPlan


@dataclass(frozen=True)
class LocalLimit(LogicalPlan):
    limit_expr: Expression
    child: LogicalPlan


@dataclass(frozen=True)
class Sort(LogicalPlan):
    order: tuple[Expression, ...]
    is_global: bool
    child: LogicalPlan


@dataclass(frozen=True)
class Window(LogicalPlan):
    window_expressions: tuple[Expression, ...]
    partition_spec: tuple[Expression, ...]
    order_spec: tuple[Expression, ...]
    child: LogicalPlan


@dataclass(frozen=True)
class Union(LogicalPlan):
    _child_fields: ClassVar[tuple[str, ...]] = ("plans",)

    plans: tuple[LogicalPlan, ...]


@dataclass(frozen=True)
class Expand(LogicalPlan):
    projections: tuple[tuple[Expression, ...], ...]
    output: tuple[Expression, ...]
    child: LogicalPlan


def leaf(name: str, data_type: str) -> Expression:
    """Build a childless expression, e.g. an attribute reference or literal."""
    return Expression(name=name, data_type=data_type)


def call(name: str, *operands: Expression, data_type: str = "null") -> Expression:
    """Build an operator expression over the given operands."""
    return Expression(name=name, children=tuple(operands), data_type=data_type)


def schema_of(*columns: tuple[str, str]) -> tuple[StructField, ...]:
    """Build a schema from (column name, type name) pairs."""
    return tuple(StructField(name=name, data_type=data_type) for name, data_type in columns)


__all__ = [
    "Aggregate",
    "BaseRelation",
    "Expand",
    "Expression",
    "FileRelation",
    "Filter",
    "Join",
    "JoinType",
    "Limit",
    "LocalLimit",
    "LogicalPlan",
    "LogicalRelation",
    "PlanNode",
    "Project",
    "ReturnAnswer",
    "SnowflakeRelation",
    "Sort",
    "StructField",
    "Union",
    "Window",
    "call",
    "leaf",
    "schema_of",
]
