"""Tests for the Hierarchy Builder and ModuleTree queries."""

import asyncio
import json

import pytest

from formlogic.core.config import Settings
from formlogic.core.errors import BuildCancelledError, IssueCode
from formlogic.core.ontology import ConditionalRule, FieldDefinition
from formlogic.hierarchy import (
    HierarchyBuilder,
    HierarchyMode,
    ModuleTree,
    auto_fix_fields,
    build_hierarchy_sync,
    find_cyclic_fields,
)


def _field(field_id: str, parent_id: str | None = None, order: int = 1, **kwargs) -> dict:
    return {"id": field_id, "fieldType": "TextBox", "parentId": parent_id, "order": order, **kwargs}


def _build(fields, mode=HierarchyMode.STRICT, provider=None, settings=None):
    return build_hierarchy_sync(
        fields, mode=mode, code_set_provider=provider,
        settings=settings or Settings(_env_file=None),
    )


def _assert_valid_preorder(tree: ModuleTree) -> None:
    """Parents precede children and every subtree is contiguous."""
    order = list(tree.field_ids())
    position = {field_id: i for i, field_id in enumerate(order)}
    assert sorted(order) == sorted(tree.nodes)
    for node in tree.fields_in_order():
        subtree = [node.id] + [d.id for d in tree.descendants(node.id)]
        start = position[node.id]
        assert order[start:start + len(subtree)] == subtree


# =============================================================================
# Tree construction
# =============================================================================


class TestBuild:
    def test_build_applicant_module(self, applicant_fields, sample_provider, settings):
        tree, result = _build(applicant_fields, provider=sample_provider, settings=settings)

        assert result.is_valid
        assert result.warnings == []
        assert tree.root_ids == ("applicant", "organization")
        assert tree.field_ids() == (
            "applicant", "full_name", "email", "province",
            "organization", "has_org", "org_name",
        )

    def test_node_depth_and_path(self, applicant_fields, sample_provider, settings):
        tree, _ = _build(applicant_fields, provider=sample_provider, settings=settings)
        node = tree.get_field("email")

        assert node.depth == 1
        assert node.path == ("applicant", "email")
        assert node.path_string == "applicant.email"
        assert node.parent_id == "applicant"
        assert tree.get_field("applicant").is_root

    def test_code_set_options_attached(self, applicant_fields, sample_provider, settings):
        tree, _ = _build(applicant_fields, provider=sample_provider, settings=settings)
        options = tree.get_field("province").options

        assert len(options) == 13
        assert options[0].value == "AB"

    def test_inline_options_sorted(self, applicant_fields, settings):
        tree, _ = _build(applicant_fields, settings=settings)
        assert [o.value for o in tree.get_field("has_org").options] == ["yes", "no"]

    def test_tree_cannot_be_changed_through_build_input(self, settings):
        rule = ConditionalRule(
            id="r",
            condition={"field": "a", "operator": "isEmpty"},
            target_field_id="a",
            action="hide",
        )
        field = FieldDefinition.drop_down(
            "a", "A",
            options=[{"value": "x", "labelEn": "X"}],
            conditional_rules=[rule],
        )
        tree, _ = _build([field], settings=settings)

        with pytest.raises(AttributeError):
            field.conditional_rules.clear()
        with pytest.raises(AttributeError):
            field.options.append(field.options[0])

        assert len(tree.rules()) == 1
        assert tree.metrics.rule_count == 1
        assert len(tree.get_field("a").definition.options) == 1
        assert len(tree.get_field("a").options) == 1

    def test_siblings_sorted_by_order_then_declaration(self):
        """Equal orders keep declaration order."""
        tree, _ = _build([
            _field("root"),
            _field("c", "root", order=2),
            _field("a", "root", order=1),
            _field("b", "root", order=2),
        ])
        assert tree.get_field("root").child_ids == ("a", "c", "b")

    def test_accepts_raw_mappings(self):
        tree, result = _build([{"id": "x", "fieldType": "TextBox"}])
        assert result.is_valid
        assert "x" in tree
        assert len(tree) == 1

    def test_invalid_mapping_aborts(self):
        tree, result = _build([{"id": "x"}])
        assert tree is None
        assert result.errors[0].code is IssueCode.INVALID_FIELD

    def test_empty_module(self):
        tree, result = _build([])
        assert result.is_valid
        assert len(tree) == 0
        assert list(tree.fields_in_order()) == []

    def test_duplicate_ids_abort(self):
        tree, result = _build([_field("a"), _field("b"), _field("a")])

        assert tree is None
        assert [e.code for e in result.errors] == [IssueCode.DUPLICATE_FIELD_ID]
        assert result.errors[0].field_id == "a"

    def test_deep_chain_builds_without_recursion(self):
        """Traversal is iterative, so very deep trees are fine."""
        fields = [_field("f0")] + [_field(f"f{i}", f"f{i - 1}") for i in range(1, 1500)]
        tree, result = _build(fields)

        assert result.is_valid
        assert tree.get_field("f1499").depth == 1499
        assert len(tree.descendants("f0")) == 1499
        assert tree.metrics.max_depth == 1499

    def test_build_module_records_key(self, schemas_dir, settings):
        from formlogic.core.loader import SchemaLoader

        module = SchemaLoader().load_file(schemas_dir / "grant_application.yaml")
        tree, result = asyncio.run(HierarchyBuilder(settings).build_module(module))

        assert tree.module_key == "GrantApplication"
        # Region references code set 500 but no provider is configured
        assert [w.code for w in result.warnings] == [IssueCode.CODE_SET_PROVIDER_MISSING]


# =============================================================================
# Structural problems
# =============================================================================


class TestStructuralProblems:
    def test_dangling_parent_becomes_root_with_one_warning(self):
        tree, result = _build([_field("a"), _field("orphan", "ghost", order=2)])

        assert result.is_valid
        assert tree.get_field("orphan").is_root
        assert len(result.warnings) == 1
        assert result.warnings[0].code is IssueCode.DANGLING_PARENT
        assert result.warnings[0].field_id == "orphan"

    def test_dangling_parent_warns_once_in_auto_fix(self):
        _, result = _build([_field("orphan", "ghost")], mode=HierarchyMode.AUTO_FIX)
        assert [w.code for w in result.warnings] == [IssueCode.DANGLING_PARENT]

    def test_mutual_cycle_strict(self):
        """Two fields parenting each other: one error each, no tree."""
        tree, result = _build([_field("a", "b"), _field("b", "a")])

        assert tree is None
        assert {(e.code, e.field_id) for e in result.errors} == {
            (IssueCode.CYCLE, "a"),
            (IssueCode.CYCLE, "b"),
        }

    def test_mutual_cycle_auto_fix(self):
        tree, result = _build([_field("a", "b"), _field("b", "a")], mode=HierarchyMode.AUTO_FIX)

        assert result.is_valid
        assert set(tree.root_ids) == {"a", "b"}
        assert [w.code for w in result.warnings] == [IssueCode.CYCLE, IssueCode.CYCLE]
        _assert_valid_preorder(tree)

    def test_self_parent_is_a_cycle(self):
        assert find_cyclic_fields([FieldDefinition(id="a", field_type="TextBox", parent_id="a")]) == ["a"]

    def test_field_below_a_cycle_is_not_itself_cyclic(self):
        fields = [
            FieldDefinition(id="a", field_type="Section", parent_id="b"),
            FieldDefinition(id="b", field_type="Section", parent_id="a"),
            FieldDefinition(id="c", field_type="TextBox", parent_id="a"),
        ]
        assert find_cyclic_fields(fields) == ["a", "b"]

    def test_auto_fix_is_pure(self):
        fields = [
            FieldDefinition(id="a", field_type="TextBox", parent_id="b"),
            FieldDefinition(id="b", field_type="TextBox", parent_id="a"),
            FieldDefinition(id="c", field_type="TextBox", parent_id="a"),
        ]
        fixed, issues = auto_fix_fields(fields)

        assert [f.parent_id for f in fixed] == [None, None, "a"]
        assert [f.parent_id for f in fields] == ["b", "a", "a"]
        assert len(issues) == 2

    def test_unknown_rule_target_warns(self):
        rule = ConditionalRule(
            id="r",
            condition={"field": "a", "operator": "isEmpty"},
            target_field_id="nowhere",
            action="hide",
        )
        tree, result = _build([FieldDefinition(id="a", field_type="TextBox", conditional_rules=[rule])])

        assert tree is not None
        assert result.warnings[0].code is IssueCode.UNKNOWN_RULE_TARGET


# =============================================================================
# Tree queries
# =============================================================================


class TestModuleTree:
    @pytest.fixture
    def tree(self) -> ModuleTree:
        tree, _ = _build([
            _field("s1", order=1),
            _field("s2", order=2),
            _field("g", "s1", order=1),
            _field("h", "g", order=1),
            _field("i", "g", order=2),
            _field("j", "s2"),
        ])
        return tree

    def test_preorder(self, tree: ModuleTree):
        assert [n.id for n in tree.fields_in_order()] == ["s1", "g", "h", "i", "s2", "j"]
        _assert_valid_preorder(tree)

    def test_fields_in_order_is_restartable(self, tree: ModuleTree):
        assert list(tree.fields_in_order()) == list(tree.fields_in_order())

    def test_ancestors_nearest_first(self, tree: ModuleTree):
        assert [n.id for n in tree.ancestors("i")] == ["g", "s1"]
        assert tree.ancestors("s1") == []

    def test_descendants_preorder(self, tree: ModuleTree):
        assert [n.id for n in tree.descendants("s1")] == ["g", "h", "i"]
        assert tree.descendants("h") == []

    def test_children_and_parent(self, tree: ModuleTree):
        assert [n.id for n in tree.children("g")] == ["h", "i"]
        assert tree.parent("h").id == "g"
        assert tree.parent("s1") is None

    def test_unknown_ids(self, tree: ModuleTree):
        assert tree.get_field("zzz") is None
        assert tree.children("zzz") == []
        assert tree.ancestors("zzz") == []
        assert "zzz" not in tree

    def test_nodes_are_read_only(self, tree: ModuleTree):
        with pytest.raises(TypeError):
            tree.nodes["x"] = tree.get_field("g")

    def test_metrics(self, tree: ModuleTree):
        metrics = tree.metrics
        assert metrics.total_fields == 6
        assert metrics.root_fields == 2
        assert metrics.max_depth == 2
        assert metrics.rule_count == 0
        # 6 fields * 1.0 + 0 rules * 2.0 + depth 2 * 5.0
        assert metrics.complexity_score == 16.0

    def test_to_dict_is_json_serializable(self, tree: ModuleTree):
        data = json.loads(json.dumps(tree.to_dict()))
        assert data["order"] == ["s1", "g", "h", "i", "s2", "j"]
        assert data["nodes"]["h"]["path"] == ["s1", "g", "h"]

    def test_rules_listed_with_declaring_node(self, applicant_fields, settings):
        tree, _ = _build(applicant_fields, settings=settings)
        [(node, rule)] = tree.rules()
        assert node.id == "has_org"
        assert rule.target_field_id == "org_name"


class TestCancellation:
    def test_cancelled_build_raises(self, settings):
        async def run():
            event = asyncio.Event()
            event.set()
            await HierarchyBuilder(settings).build([_field("a")], cancel_event=event)

        with pytest.raises(BuildCancelledError):
            asyncio.run(run())
