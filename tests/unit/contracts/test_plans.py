"""Tests for the logical plan model.

Tests cover:
- node_name, children and arg_string for each node kind
- tree_string rendering used in pushdown failure reports
- Expression rendering
"""

from querytrace.contracts.plans import (
    FileRelation,
    Filter,
    Join,
    JoinType,
    LogicalRelation,
    PlanNode,
    Project,
    ReturnAnswer,
    SnowflakeRelation,
    Sort,
    Union,
    call,
    leaf,
    schema_of,
)


def _scan(table: str) -> LogicalRelation:
    return LogicalRelation(relation=SnowflakeRelation(schema=schema_of(("ID", "integer")), table=table))


class TestExpression:
    def test_leaf_renders_as_name(self) -> None:
        assert str(leaf("AttributeReference", "integer")) == "AttributeReference"

    def test_operator_renders_operands(self) -> None:
        expression = call("And", leaf("A", "boolean"), call("Not", leaf("B", "boolean")))
        assert str(expression) == "And(A, Not(B))"

    def test_operator_type_defaults_to_null(self) -> None:
        assert call("Add", leaf("A", "integer")).data_type == "null"


class TestNodeStructure:
    def test_node_name_is_class_name(self) -> None:
        assert Filter(condition=leaf("A", "boolean"), child=_scan("T")).node_name == "Filter"

    def test_plan_node_uses_given_name_and_args(self) -> None:
        node = PlanNode(name="Distinct", child_plans=(_scan("T"),), args="all")
        assert node.node_name == "Distinct"
        assert node.arg_string == "all"
        assert node.children == (_scan("T"),)

    def test_relation_is_a_leaf(self) -> None:
        assert _scan("T").children == ()

    def test_join_children_are_left_then_right(self) -> None:
        left, right = _scan("L"), _scan("R")
        join = Join(left=left, right=right, join_type=JoinType.INNER)
        assert join.children == (left, right)

    def test_union_children_in_order(self) -> None:
        plans = (_scan("A"), _scan("B"), _scan("C"))
        assert Union(plans=plans).children == plans


class TestArgString:
    def test_child_fields_are_excluded(self) -> None:
        plan = Project(project_list=(leaf("A", "integer"), leaf("B", "string")), child=_scan("T"))
        assert plan.arg_string == "[A, B]"

    def test_booleans_render_lowercase(self) -> None:
        plan = Sort(order=(leaf("A", "integer"),), is_global=True, child=_scan("T"))
        assert plan.arg_string == "[A], true"

    def test_missing_join_condition_is_omitted(self) -> None:
        join = Join(left=_scan("L"), right=_scan("R"), join_type=JoinType.LEFT_OUTER)
        assert join.arg_string == "LeftOuter"

    def test_relation_renders_relation(self) -> None:
        assert _scan("ORDERS").arg_string == "SnowflakeRelation(ORDERS)"
        assert LogicalRelation(relation=FileRelation(path="/data/x.parquet")).arg_string == (
            "FileRelation(/data/x.parquet)"
        )

    def test_root_has_no_args(self) -> None:
        assert ReturnAnswer(child=_scan("T")).arg_string == ""


class TestTreeString:
    def test_single_node(self) -> None:
        assert _scan("T").tree_string() == "LogicalRelation SnowflakeRelation(T)"

    def test_chain_uses_last_child_connector(self) -> None:
        plan = Filter(condition=call("IsNotNull", leaf("A", "integer")), child=_scan("T"))
        assert plan.tree_string() == "Filter IsNotNull(A)\n+- LogicalRelation SnowflakeRelation(T)"

    def test_siblings_use_continuation_connector(self) -> None:
        join = Join(
            left=Filter(condition=leaf("A", "boolean"), child=_scan("L")),
            right=_scan("R"),
            join_type=JoinType.INNER,
        )
        assert join.tree_string().splitlines() == [
            "Join Inner",
            ":- Filter A",
            ":  +- LogicalRelation SnowflakeRelation(L)",
            "+- LogicalRelation SnowflakeRelation(R)",
        ]

    def test_str_is_tree_string(self) -> None:
        plan = ReturnAnswer(child=_scan("T"))
        assert str(plan) == plan.tree_string()
