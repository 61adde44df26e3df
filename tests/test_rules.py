from flowaudit.config import LintPolicy
from flowaudit.errors import WARNING
from flowaudit.structural.checker import validate
from flowaudit.structural.rules import (
    count_expressions,
    deprecated_data_access,
    missing_return,
    run_rules,
    unterminated_expression,
)


def code_node(js, name="Transform", ntype="n8n-nodes-base.code"):
    return {"id": name.lower(), "name": name, "type": ntype, "parameters": {"jsCode": js}}


def test_count_expressions_scans_nested_parameters():
    node = {
        "parameters": {
            "text": "Hello {{ $json.name }}, today is {{ $now }}",
            "options": {"headers": [{"value": "{{ $node['Auth'].json.token }}"}]},
        }
    }
    assert count_expressions(node) == 3
    assert count_expressions({"parameters": {}}) == 0
    assert count_expressions({}) == 0


def test_deprecated_idiom_is_flagged_with_replacement():
    issues = deprecated_data_access(code_node("const a = items[0].json; return a;"), LintPolicy())
    assert len(issues) == 1
    assert issues[0].kind == "ExpressionLintError"
    assert issues[0].rule == "deprecated_data_access"
    assert "'$input.all()[0].json'" in issues[0].message
    assert issues[0].message.startswith('Code node "Transform"')


def test_deprecated_idioms_are_configurable():
    policy = LintPolicy(deprecated_idioms={"$node[": "$('Node Name')"})
    node = code_node("return $node['X'].json;")
    assert len(deprecated_data_access(node, policy)) == 1
    assert deprecated_data_access(code_node("const a = items[0].json; return a;"), policy) == []


def test_missing_return_needs_both_markers_absent():
    policy = LintPolicy()
    assert len(missing_return(code_node("const x = 1;"), policy)) == 1
    assert missing_return(code_node("return [{json: {}}];"), policy) == []
    assert missing_return(code_node("$input.all().forEach(i => i)"), policy) == []


def test_code_rules_ignore_other_node_kinds():
    node = code_node("const a = items[0].json;", ntype="n8n-nodes-base.function")
    policy = LintPolicy()
    assert deprecated_data_access(node, policy) == []
    assert missing_return(node, policy) == []
    # but a policy can opt that kind in
    policy = LintPolicy(code_node_types=("n8n-nodes-base.function",))
    assert len(deprecated_data_access(node, policy)) == 1


def test_code_node_without_js_is_not_linted():
    node = {"id": "c", "name": "C", "type": "n8n-nodes-base.code", "parameters": {"mode": "runOnceForAllItems"}}
    assert run_rules([node], LintPolicy()) == []


def test_unterminated_and_empty_expressions():
    node = {
        "id": "s",
        "name": "Set",
        "type": "n8n-nodes-base.set",
        "parameters": {
            "values": {"string": [{"name": "a", "value": "{{ $json.a"}]},
            "other": "prefix {{   }} suffix",
            "fine": "{{ $json.ok }}",
        },
    }
    issues = unterminated_expression(node, LintPolicy())
    assert len(issues) == 2
    assert "unterminated expression in parameter 'values.string[0].value'" in issues[0].message
    assert "empty expression in parameter 'other'" in issues[1].message


def test_braces_inside_code_bodies_are_not_expressions():
    node = code_node("const o = {{a: 1}}.a; return o;")
    assert unterminated_expression(node, LintPolicy()) == []


def test_warning_severity_does_not_fail_validation():
    wf = {
        "nodes": [code_node("const x = 1;")],
        "connections": {},
    }
    assert not validate(wf).passed

    policy = LintPolicy(severity={"missing_return": WARNING})
    outcome = validate(wf, policy)
    assert outcome.passed
    assert [i.rule for i in outcome.warnings] == ["missing_return"]
    assert outcome.checks["expressions"] is True


def test_custom_rule_set_plugs_in():
    def no_http(node, policy):
        from flowaudit.errors import Issue

        if "http" in str(node.get("type", "")).lower():
            return [Issue(kind="ExpressionLintError", message="no HTTP allowed", rule="no_http")]
        return []

    wf = {
        "nodes": [{"id": "h", "name": "H", "type": "n8n-nodes-base.httpRequest"}],
        "connections": {},
    }
    assert validate(wf).passed
    outcome = validate(wf, rules=[no_http])
    assert outcome.messages() == ["[ExpressionLintError] no HTTP allowed"]
