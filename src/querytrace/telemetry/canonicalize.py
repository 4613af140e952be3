# src/querytrace/telemetry/canonicalize.py
"""Convert plan and expression trees into canonical telemetry documents.

The output is a pure function of the tree. The only normalization applied is
sorting the operands of commutative boolean operators (And, Or): the planner
may present those operands in any order, and telemetry documents are
compared by equality in tests and deduplicated downstream.

Plan documents have one shape for every node:

    {"action": <node name>, "args": <object or arg string>, "children": [...]}

"args" is an object when the node kind has structured arguments and falls
back to the node's one-line argument string otherwise.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from querytrace.contracts.enums import TelemetryEventKind
from querytrace.contracts.plans import (
    Aggregate,
    Expand,
    Expression,
    Filter,
    Join,
    Limit,
    LocalLimit,
    LogicalPlan,
    LogicalRelation,
    Project,
    SnowflakeRelation,
    Sort,
    Union,
    Window,
)
from querytrace.core.canonical import canonical_json

# Action reported for relations read by Snowflake
SNOWFLAKE_RELATION_ACTION = "SnowflakeRelation"

# Only complete queries are reported; sub-invocations of the planner are not
ROOT_NODE_NAME = "ReturnAnswer"

_COMMUTATIVE_OPERATORS = frozenset({"And", "Or"})


def _expression_with_text(root: Expression) -> tuple[dict[str, Any], str]:
    """Build the document and its canonical JSON text for an expression tree.

    Walks post-order with an explicit stack, so arbitrarily deep operator
    chains (e.g. generated And/Or predicates) cannot exhaust the interpreter
    stack. An operator's canonical text is assembled from its operands'
    texts, so no subtree is serialized twice.

    Built entries are released once every parent that references them has
    consumed them; the same Expression object may appear in several places.
    """
    built: dict[int, tuple[dict[str, Any], str]] = {}
    pending_uses: dict[int, int] = {}
    stack: list[tuple[Expression, bool]] = [(root, False)]
    while stack:
        node, operands_ready = stack.pop()
        if not node.children:
            leaf_document = {"source": node.node_name, "type": node.data_type}
            built[id(node)] = (leaf_document, canonical_json(leaf_document))
        elif not operands_ready:
            stack.append((node, True))
            for child in node.children:
                pending_uses[id(child)] = pending_uses.get(id(child), 0) + 1
                stack.append((child, False))
        else:
            operands = [built[id(child)] for child in node.children]
            for child in node.children:
                pending_uses[id(child)] -= 1
                if pending_uses[id(child)] == 0:
                    del built[id(child)]
            if node.node_name in _COMMUTATIVE_OPERATORS:
                operands.sort(key=lambda operand: operand[1])
            document = {
                "operator": node.node_name,
                "parameters": [operand_document for operand_document, _ in operands],
            }
            # Keys in RFC 8785 order: "operator" < "parameters"
            text = (
                '{"operator":'
                + canonical_json(node.node_name)
                + ',"parameters":['
                + ",".join(operand_text for _, operand_text in operands)
                + "]}"
            )
            built[id(node)] = (document, text)
    return built[id(root)]


def expression_to_document(expression: Expression) -> dict[str, Any]:
    """Convert an expression tree to a document.

    Leaves become {"source", "type"}; operators become {"operator", "parameters"}.
    """
    return _expression_with_text(expression)[0]


def expressions_to_document(expressions: Iterable[Expression]) -> list[dict[str, Any]]:
    """Convert a sequence of expressions, preserving order."""
    return [expression_to_document(expression) for expression in expressions]


def plan_tree(plan: LogicalPlan) -> tuple[bool, dict[str, Any]]:
    """Convert a plan tree to a document.

    Returns:
        (is_snowflake_plan, document) where is_snowflake_plan is True when any
        node in the subtree reads a Snowflake relation.
    """
    action = plan.node_name
    is_snowflake_plan = False
    args: dict[str, Any] = {}

    match plan:
        case LogicalRelation(relation=SnowflakeRelation() as relation):
            is_snowflake_plan = True
            action = SNOWFLAKE_RELATION_ACTION
            args["schema"] = [field.data_type for field in relation.schema]

        case Filter(condition=condition):
            args["conditions"] = expression_to_document(condition)

        case Project(project_list=fields):
            args["fields"] = expressions_to_document(fields)

        case Join(join_type=join_type, condition=Expression() as condition):
            args["type"] = str(join_type)
            args["conditions"] = expression_to_document(condition)

        case Aggregate(grouping_expressions=groups, aggregate_expressions=fields):
            args["field"] = expressions_to_document(fields)
            args["group"] = expressions_to_document(groups)

        case Limit(limit_expr=condition) | LocalLimit(limit_expr=condition):
            args["condition"] = expression_to_document(condition)

        case Sort(order=orders, is_global=is_global):
            args["global"] = is_global
            args["order"] = expressions_to_document(orders)

        case Window(window_expressions=named_expressions):
            args["expression"] = expressions_to_document(named_expressions)

        case Union() | Expand():
            pass

        # Unknown node kinds keep their arg string (forward compatibility)
        case _:
            pass

    children = []
    for child in plan.children:
        child_is_snowflake, child_document = plan_tree(child)
        if child_is_snowflake:
            is_snowflake_plan = True
        children.append(child_document)

    document: dict[str, Any] = {
        "action": action,
        "args": args if args else plan.arg_string,
        "children": children,
    }
    return is_snowflake_plan, document


def plan_to_document(plan: LogicalPlan) -> tuple[TelemetryEventKind, dict[str, Any]] | None:
    """Build a plan event payload for a complete query that touches Snowflake.

    Returns:
        (SPARK_PLAN, document) when the root is ReturnAnswer and the tree
        reads a Snowflake relation; None otherwise.
    """
    if plan.node_name != ROOT_NODE_NAME:
        return None
    is_snowflake_plan, document = plan_tree(plan)
    if not is_snowflake_plan:
        return None
    return TelemetryEventKind.SPARK_PLAN, document
