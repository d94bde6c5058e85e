"""Tests for extension attribute reading and the interface model builder."""

from __future__ import annotations

import pytest

from agentidl.domain.errors import MalformedDocument, NoInterfaceDefinition
from agentidl.domain.extattrs import (
    ExtensionRecord,
    attribute_names,
    normalize_extended_attributes,
    read_ext_attr,
)
from agentidl.domain.model import InterfaceModel, build_interface_model
from agentidl.domain.typedesc import Generic, Primitive
from tests.conftest import (
    agent_task_ast,
    argument,
    ext_attr,
    generic_type,
    interface,
    operation,
    union_type,
)


class TestReadExtAttr:
    def test_quoted_string_is_unquoted(self) -> None:
        assert read_ext_attr([ext_attr("Intent", "agent:X")], "Intent") == "agent:X"

    def test_identifier_value(self) -> None:
        attrs = [ext_attr("Proof", "ledger", quoted=False)]
        assert read_ext_attr(attrs, "Proof") == "ledger"

    def test_bare_string_rhs(self) -> None:
        attrs = [{"name": "Semantic", "rhs": "agent:Task"}]
        assert read_ext_attr(attrs, "Semantic") == "agent:Task"

    def test_missing_attribute(self) -> None:
        assert read_ext_attr([ext_attr("Intent", "agent:X")], "Proof") is None

    def test_absent_list(self) -> None:
        assert read_ext_attr(None, "Intent") is None
        assert read_ext_attr([], "Intent") is None

    def test_flag_attribute_has_no_value(self) -> None:
        assert read_ext_attr([ext_attr("Delegation")], "Delegation") is None

    def test_non_string_rhs(self) -> None:
        attrs = [{"name": "Intent", "rhs": {"type": "integer-list", "value": [1, 2]}}]
        assert read_ext_attr(attrs, "Intent") is None

    def test_lone_quote_is_kept(self) -> None:
        attrs = [{"name": "Intent", "rhs": '"'}]
        assert read_ext_attr(attrs, "Intent") == '"'

    def test_first_match_wins(self) -> None:
        attrs = [ext_attr("Intent", "agent:First"), ext_attr("Intent", "agent:Second")]
        assert read_ext_attr(attrs, "Intent") == "agent:First"

    def test_attribute_names(self) -> None:
        attrs = [ext_attr("Intent", "a"), ext_attr("Delegation")]
        assert attribute_names(attrs) == ["Intent", "Delegation"]

    def test_bare_string_attribute_is_malformed(self) -> None:
        with pytest.raises(MalformedDocument, match="extended attribute object"):
            attribute_names(["Intent"])
        with pytest.raises(MalformedDocument):
            read_ext_attr([ext_attr("Proof", "x"), "Intent"], "Intent")

    def test_attribute_mapping_is_malformed(self) -> None:
        with pytest.raises(MalformedDocument, match="list of extended attributes"):
            attribute_names({"name": "Intent"})

    def test_extension_record(self) -> None:
        record = ExtensionRecord.read(
            [ext_attr("Intent", "agent:Pay"), ext_attr("Capability", "pay")]
        )
        assert record.intent == "agent:Pay"
        assert record.capability == "pay"
        assert record.proof is None


class TestNormalizeExtendedAttributes:
    def test_double_brackets_collapse(self) -> None:
        source = "[[Intent=\"agent:X\"]] Promise<any> run();"
        assert normalize_extended_attributes(source) == "[Intent=\"agent:X\"] Promise<any> run();"

    def test_single_brackets_untouched(self) -> None:
        source = "[Exposed=Window] interface A {};"
        assert normalize_extended_attributes(source) == source


class TestBuildInterfaceModel:
    def test_agent_task(self, agent_task_model: InterfaceModel) -> None:
        model = agent_task_model
        assert model.name == "AgentTask"
        assert model.semantic == "agent:Task"
        assert model.context is not None and model.context.endswith("context.jsonld")
        assert list(model.operations) == ["proposeContract", "executePayment"]

        propose = model.operations["proposeContract"]
        assert propose.intent == "agent:ProposeContract"
        assert propose.proof is None
        assert propose.return_type == "Promise<Outcome>"
        assert [(p.name, p.type) for p in propose.params] == [("data", "ContractData")]

        pay = model.operations["executePayment"]
        assert pay.intent == "agent:ExecutePayment"
        assert pay.proof == "ledger:tx"
        assert pay.param_names == ["payment"]

    def test_descriptors_are_kept(self, agent_task_model: InterfaceModel) -> None:
        propose = agent_task_model.operations["proposeContract"]
        assert propose.return_descriptor == Generic("Promise", (Primitive("Outcome"),))
        assert propose.params[0].descriptor == Primitive("ContractData")

    def test_no_interface_raises(self) -> None:
        with pytest.raises(NoInterfaceDefinition, match="No interface definition found in IDL."):
            build_interface_model([{"type": "dictionary", "name": "Opts", "members": []}])

    def test_empty_ast_raises(self) -> None:
        with pytest.raises(NoInterfaceDefinition):
            build_interface_model([])

    def test_first_interface_only(self) -> None:
        ast = [interface("First", []), interface("Second", [operation("go")])]
        model = build_interface_model(ast)
        assert model.name == "First"
        assert model.operations == {}

    def test_missing_intent_is_empty_string(self) -> None:
        model = build_interface_model([interface("A", [operation("ping")])])
        assert model.operations["ping"].intent == ""

    def test_missing_return_type_is_any(self) -> None:
        op = operation("ping")
        op["idlType"] = None
        model = build_interface_model([interface("A", [op])])
        assert model.operations["ping"].return_type == "any"

    def test_non_operation_members_skipped(self) -> None:
        attribute = {"type": "attribute", "name": "status", "idlType": "DOMString"}
        model = build_interface_model([interface("A", [attribute, operation("ping")])])
        assert list(model.operations) == ["ping"]

    def test_anonymous_operation_skipped(self) -> None:
        getter = operation("")
        getter["special"] = "getter"
        model = build_interface_model([interface("A", [getter, operation("ping")])])
        assert list(model.operations) == ["ping"]

    def test_redeclared_operation_overwrites(self) -> None:
        ast = [
            interface(
                "A",
                [
                    operation("run", ext_attrs=[ext_attr("Intent", "agent:Old")]),
                    operation("run", ext_attrs=[ext_attr("Intent", "agent:New")]),
                ],
            )
        ]
        model = build_interface_model(ast)
        assert model.operations["run"].intent == "agent:New"

    def test_union_parameter_type(self) -> None:
        run = operation("run", arguments=[argument("v", union_type("long", "DOMString"))])
        model = build_interface_model([interface("A", [run])])
        assert model.operations["run"].params[0].type == "long or DOMString"

    def test_parameter_order_preserved(self) -> None:
        ast = [
            interface(
                "A",
                [
                    operation(
                        "run",
                        returns=generic_type("Promise", "any"),
                        arguments=[argument(n, "long") for n in ("z", "a", "m")],
                    )
                ],
            )
        ]
        assert build_interface_model(ast).operations["run"].param_names == ["z", "a", "m"]

    def test_to_dict(self) -> None:
        data = build_interface_model(agent_task_ast()).to_dict()
        assert data["name"] == "AgentTask"
        assert data["methods"]["executePayment"] == {
            "name": "executePayment",
            "intent": "agent:ExecutePayment",
            "proof": "ledger:tx",
            "params": [{"name": "payment", "type": "PaymentRequest"}],
            "returnType": "Promise<Receipt>",
        }

    def test_build_is_deterministic(self) -> None:
        assert build_interface_model(agent_task_ast()) == build_interface_model(agent_task_ast())


class TestMalformedAst:
    def test_non_object_definition(self) -> None:
        with pytest.raises(MalformedDocument, match="definitions"):
            build_interface_model([interface("A", []), "interface B"])

    def test_members_must_be_a_list(self) -> None:
        iface = interface("A", [])
        iface["members"] = "ping"
        with pytest.raises(MalformedDocument, match="interface members"):
            build_interface_model([iface])

    def test_non_object_argument(self) -> None:
        op = operation("send")
        op["arguments"] = ["message"]
        with pytest.raises(MalformedDocument, match="arguments"):
            build_interface_model([interface("A", [op])])

    def test_bare_string_ext_attr(self) -> None:
        op = operation("run")
        op["extAttrs"] = ["Intent"]
        with pytest.raises(MalformedDocument):
            build_interface_model([interface("A", [op])])
