# src/querytrace/core/plan_loader.py
"""Build plan trees from plain descriptions (YAML/JSON).

Used by the CLI to canonicalize a plan captured outside the planner, and by
tests to write fixtures compactly. A description is a mapping with a "node"
key naming the operator; the remaining keys depend on the operator:

    node: ReturnAnswer
    child:
      node: Filter
      condition: {name: IsNotNull, children: [{name: AttributeReference, type: string}]}
      child:
        node: LogicalRelation
        relation: {kind: snowflake, table: ORDERS, schema: [[ID, integer], [NAME, string]]}

Unrecognized operator names become PlanNode with "children" and "args".
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import yaml

from querytrace.contracts.plans import (
    Aggregate,
    BaseRelation,
    Expand,
    Expression,
    FileRelation,
    Filter,
    Join,
    JoinType,
    Limit,
    LocalLimit,
    LogicalPlan,
    LogicalRelation,
    PlanNode,
    Project,
    ReturnAnswer,
    SnowflakeRelation,
    Sort,
    StructField,
    Union,
    Window,
)


class PlanDescriptionError(ValueError):
    """Raised when a plan description is malformed."""


def _require(description: Mapping[str, Any], key: str, node: str) -> Any:
    if key not in description:
        raise PlanDescriptionError(f"{node} requires '{key}'")
    return description[key]


def expression_from_dict(description: Mapping[str, Any]) -> Expression:
    """Build an expression from {"name", "children", "type"}."""
    if not isinstance(description, Mapping):
        raise PlanDescriptionError(f"expression must be a mapping, got {type(description).__name__}")
    name = _require(description, "name", "expression")
    children = tuple(expression_from_dict(child) for child in description.get("children", ()))
    return Expression(name=str(name), children=children, data_type=str(description.get("type", "null")))


def _expressions(description: Mapping[str, Any], key: str, node: str) -> tuple[Expression, ...]:
    value = description.get(key, ())
    if not isinstance(value, list | tuple):
        raise PlanDescriptionError(f"{node}.{key} must be a list of expressions")
    return tuple(expression_from_dict(item) for item in value)


def _schema(value: Any) -> tuple[StructField, ...]:
    fields: list[StructField] = []
    for column in value:
        if isinstance(column, Mapping):
            fields.append(StructField(name=str(column["name"]), data_type=str(column["type"])))
        else:
            name, data_type = column
            fields.append(StructField(name=str(name), data_type=str(data_type)))
    return tuple(fields)


def _relation(description: Mapping[str, Any]) -> BaseRelation:
    kind = description.get("kind", "snowflake")
    schema = _schema(description.get("schema", ()))
    if kind == "snowflake":
        return SnowflakeRelation(schema=schema, table=str(description.get("table", "")))
    if kind == "file":
        return FileRelation(path=str(_require(description, "path", "relation")), schema=schema)
    raise PlanDescriptionError(f"Unknown relation kind '{kind}'. Expected 'snowflake' or 'file'")


def _child(description: Mapping[str, Any], node: str) -> LogicalPlan:
    return plan_from_dict(_require(description, "child", node))


def _build_relation(d: Mapping[str, Any]) -> LogicalPlan:
    return LogicalRelation(relation=_relation(_require(d, "relation", "LogicalRelation")))


def _build_join(d: Mapping[str, Any]) -> LogicalPlan:
    condition = d.get("condition")
    return Join(
        left=plan_from_dict(_require(d, "left", "Join")),
        right=plan_from_dict(_require(d, "right", "Join")),
        join_type=JoinType(d.get("type", JoinType.INNER.value)),
        condition=expression_from_dict(condition) if condition is not None else None,
    )


_BUILDERS: dict[str, Callable[[Mapping[str, Any]], LogicalPlan]] = {
    "ReturnAnswer": lambda d: ReturnAnswer(child=_child(d, "ReturnAnswer")),
    "LogicalRelation": _build_relation,
    "Filter": lambda d: Filter(
        condition=expression_from_dict(_require(d, "condition", "Filter")),
        child=_child(d, "Filter"),
    ),
    "Project": lambda d: Project(project_list=_expressions(d, "fields", "Project"), child=_child(d, "Project")),
    "Join": _build_join,
    "Aggregate": lambda d: Aggregate(
        grouping_expressions=_expressions(d, "group", "Aggregate"),
        aggregate_expressions=_expressions(d, "fields", "Aggregate"),
        child=_child(d, "Aggregate"),
    ),
    "Limit": lambda d: Limit(limit_expr=expression_from_dict(_require(d, "limit", "Limit")), child=_child(d, "Limit")),
    "LocalLimit": lambda d: LocalLimit(
        limit_expr=expression_from_dict(_require(d, "limit", "LocalLimit")),
        child=_child(d, "LocalLimit"),
    ),
    "Sort": lambda d: Sort(
        order=_expressions(d, "order", "Sort"),
        is_global=bool(d.get("global", True)),
        child=_child(d, "Sort"),
    ),
    "Window": lambda d: Window(
        window_expressions=_expressions(d, "expressions", "Window"),
        partition_spec=_expressions(d, "partition", "Window"),
        order_spec=_expressions(d, "order", "Window"),
        child=_child(d, "Window"),
    ),
    "Union": lambda d: Union(plans=tuple(plan_from_dict(child) for child in d.get("children", ()))),
    "Expand": lambda d: Expand(
        projections=tuple(
            tuple(expression_from_dict(item) for item in projection) for projection in d.get("projections", ())
        ),
        output=_expressions(d, "output", "Expand"),
        child=_child(d, "Expand"),
    ),
}


def plan_from_dict(description: Mapping[str, Any]) -> LogicalPlan:
    """Build a plan tree from a description mapping.

    Raises:
        PlanDescriptionError: If a required key is missing or a value has the wrong shape
    """
    if not isinstance(description, Mapping):
        raise PlanDescriptionError(f"plan node must be a mapping, got {type(description).__name__}")
    node = str(_require(description, "node", "plan node"))
    builder = _BUILDERS.get(node)
    if builder is not None:
        try:
            return builder(description)
        except PlanDescriptionError:
            raise
        except (KeyError, TypeError, ValueError) as e:
            raise PlanDescriptionError(f"Malformed {node} description: {e}") from e
    return PlanNode(
        name=node,
        child_plans=tuple(plan_from_dict(child) for child in description.get("children", ())),
        args=str(description.get("args", "")),
    )


def load_plan(path: Path) -> LogicalPlan:
    """Load a plan description from a YAML (or JSON) file.

    Raises:
        PlanDescriptionError: If the file is not valid UTF-8 YAML or describes an invalid plan
    """
    try:
        with path.open(encoding="utf-8") as f:
            description = yaml.safe_load(f)
    except (yaml.YAMLError, UnicodeDecodeError) as e:
        raise PlanDescriptionError(f"Cannot parse {path}: {e}") from e
    return plan_from_dict(description)
