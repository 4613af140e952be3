"""Tests for building plan trees from descriptions."""

from pathlib import Path

import pytest
import yaml

from querytrace.contracts.plans import (
    Aggregate,
    FileRelation,
    Filter,
    Join,
    JoinType,
    LogicalRelation,
    PlanNode,
    ReturnAnswer,
    SnowflakeRelation,
    Sort,
    Union,
)
from querytrace.core.plan_loader import PlanDescriptionError, expression_from_dict, load_plan, plan_from_dict

SCAN = {"node": "LogicalRelation", "relation": {"kind": "snowflake", "table": "T", "schema": [["ID", "integer"]]}}


class TestExpressionFromDict:
    def test_nested(self) -> None:
        expression = expression_from_dict(
            {"name": "And", "children": [{"name": "A", "type": "boolean"}, {"name": "B", "type": "boolean"}]}
        )
        assert expression.name == "And"
        assert [child.name for child in expression.children] == ["A", "B"]
        assert expression.children[0].data_type == "boolean"

    def test_type_defaults_to_null(self) -> None:
        assert expression_from_dict({"name": "Literal"}).data_type == "null"

    def test_missing_name(self) -> None:
        with pytest.raises(PlanDescriptionError, match="'name'"):
            expression_from_dict({"type": "integer"})


class TestPlanFromDict:
    def test_snowflake_relation(self) -> None:
        plan = plan_from_dict(SCAN)
        assert isinstance(plan, LogicalRelation)
        assert isinstance(plan.relation, SnowflakeRelation)
        assert plan.relation.table == "T"
        assert plan.relation.schema[0].data_type == "integer"

    def test_schema_as_mappings(self) -> None:
        plan = plan_from_dict(
            {"node": "LogicalRelation", "relation": {"schema": [{"name": "ID", "type": "long"}]}}
        )
        assert isinstance(plan, LogicalRelation)
        assert plan.relation.schema[0].name == "ID"

    def test_file_relation(self) -> None:
        plan = plan_from_dict({"node": "LogicalRelation", "relation": {"kind": "file", "path": "/tmp/x.csv"}})
        assert isinstance(plan, LogicalRelation)
        assert isinstance(plan.relation, FileRelation)

    def test_unknown_relation_kind(self) -> None:
        with pytest.raises(PlanDescriptionError, match="Unknown relation kind"):
            plan_from_dict({"node": "LogicalRelation", "relation": {"kind": "kafka"}})

    def test_nested_plan(self) -> None:
        plan = plan_from_dict(
            {"node": "ReturnAnswer", "child": {"node": "Filter", "condition": {"name": "A"}, "child": SCAN}}
        )
        assert isinstance(plan, ReturnAnswer)
        assert isinstance(plan.child, Filter)
        assert isinstance(plan.child.child, LogicalRelation)

    def test_join_defaults_to_inner_without_condition(self) -> None:
        plan = plan_from_dict({"node": "Join", "left": SCAN, "right": SCAN})
        assert isinstance(plan, Join)
        assert plan.join_type is JoinType.INNER
        assert plan.condition is None

    def test_aggregate(self) -> None:
        plan = plan_from_dict(
            {"node": "Aggregate", "group": [{"name": "A"}], "fields": [{"name": "Sum"}], "child": SCAN}
        )
        assert isinstance(plan, Aggregate)
        assert [e.name for e in plan.grouping_expressions] == ["A"]
        assert [e.name for e in plan.aggregate_expressions] == ["Sum"]

    def test_sort_global_flag(self) -> None:
        plan = plan_from_dict({"node": "Sort", "order": [{"name": "A"}], "global": False, "child": SCAN})
        assert isinstance(plan, Sort)
        assert plan.is_global is False

    def test_union(self) -> None:
        plan = plan_from_dict({"node": "Union", "children": [SCAN, SCAN]})
        assert isinstance(plan, Union)
        assert len(plan.children) == 2

    def test_unknown_node_becomes_plan_node(self) -> None:
        plan = plan_from_dict({"node": "Distinct", "args": "all", "children": [SCAN]})
        assert isinstance(plan, PlanNode)
        assert plan.node_name == "Distinct"
        assert plan.arg_string == "all"
        assert len(plan.children) == 1

    def test_missing_child(self) -> None:
        with pytest.raises(PlanDescriptionError, match="Filter requires 'child'"):
            plan_from_dict({"node": "Filter", "condition": {"name": "A"}})

    def test_invalid_join_type_wrapped(self) -> None:
        with pytest.raises(PlanDescriptionError, match="Malformed Join"):
            plan_from_dict({"node": "Join", "left": SCAN, "right": SCAN, "type": "Sideways"})

    def test_non_mapping(self) -> None:
        with pytest.raises(PlanDescriptionError, match="must be a mapping"):
            plan_from_dict(["node"])  # type: ignore[arg-type]


class TestLoadPlan:
    def test_load_yaml_file(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text(yaml.dump({"node": "ReturnAnswer", "child": SCAN}))
        assert isinstance(load_plan(path), ReturnAnswer)

    def test_malformed_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text("node: Filter\ncondition: [unclosed\n")
        with pytest.raises(PlanDescriptionError, match="Cannot parse"):
            load_plan(path)

    def test_non_utf8_file(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_bytes(b"node: \xff\xfe Filter\n")
        with pytest.raises(PlanDescriptionError, match="Cannot parse"):
            load_plan(path)

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "plan.yaml"
        path.write_text("")
        with pytest.raises(PlanDescriptionError, match="must be a mapping"):
            load_plan(path)
