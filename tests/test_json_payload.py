import json

from rhizome_map.graph_model import Edge, Node
from rhizome_map.json_payload import (
    FALLBACK_LABEL_LENGTH,
    FALLBACK_NODE_LIMIT,
    coerce_nodes,
    parse_nodes_from_text,
    parse_payload,
    parse_with_fallback,
    strip_code_fences,
    validate_nodes_payload,
    validate_round_payload,
)


def test_strip_code_fences_removes_json_fence():
    text = '```json\n{"nodes": []}\n```'
    assert strip_code_fences(text) == '{"nodes": []}'


def test_strip_code_fences_leaves_plain_text_alone():
    assert strip_code_fences('  {"a": 1}  ') == '{"a": 1}'


def test_parse_payload_reads_fenced_nodes():
    text = '```\n{"nodes": [{"id": "n1", "label": "Shadow", "type": "archetype"}]}\n```'
    payload, error = parse_payload(text, validate_nodes_payload)
    assert error == ""
    assert payload["nodes"] == [Node(id="n1", label="Shadow", type="archetype")]


def test_parse_payload_reports_empty_response():
    assert parse_payload("   ", validate_nodes_payload) == ({}, "empty_response")


def test_parse_payload_reports_decode_error_for_prose():
    payload, error = parse_payload("Here are your nodes: Shadow, Light", validate_nodes_payload)
    assert payload == {}
    assert error.startswith("json_decode_error")


def test_validate_nodes_payload_rejects_wrong_shape():
    assert validate_nodes_payload({"items": []})[1].startswith("invalid_shape")
    assert validate_nodes_payload([{"id": "n1"}])[1].startswith("invalid_shape")
    assert validate_nodes_payload({"nodes": "n1"})[1].startswith("invalid_shape")


def test_coerce_nodes_turns_strings_into_general_nodes_and_fills_missing_fields():
    nodes = coerce_nodes(["The Tower", 7, {"label": "Creative Renewal"}, {"id": "n2", "label": "Grief", "type": None}, {}])
    assert nodes == [
        Node(id="node1", label="The Tower", type="general"),
        Node(id="node2", label="Creative Renewal", type="general"),
        Node(id="n2", label="Grief", type="general"),
    ]


def test_coerce_nodes_generated_ids_skip_taken_ids():
    nodes = coerce_nodes(
        [{"label": "Hope", "type": "emotion"}, {"id": "node2", "label": "Star"}, {"label": "Hope", "type": "theme"}],
        existing_ids=["node1"],
    )
    assert [node.id for node in nodes] == ["node3", "node2", "node4"]
    assert len({node.id for node in nodes} | {"node1"}) == 4


def test_coerce_nodes_truncates_string_labels():
    nodes = coerce_nodes(["x" * 80])
    assert len(nodes[0].label) == FALLBACK_LABEL_LENGTH


def test_validate_nodes_payload_reports_lists_with_nothing_usable():
    assert validate_nodes_payload({"nodes": [1, None, {}]})[1].startswith("invalid_shape")
    assert validate_nodes_payload({"nodes": []}) == ({"nodes": []}, "")


def test_coerce_nodes_keeps_unknown_types_verbatim():
    nodes = coerce_nodes([{"id": "n1", "label": "Inner Child", "type": "psychological"}])
    assert nodes[0].type == "psychological"


def test_validate_round_payload_defaults():
    payload, error = validate_round_payload({"edges": [{"from": "a", "to": "b", "relationship": "mirrors"}]})
    assert error == ""
    assert payload == {"edges": [Edge("a", "b", "mirrors")], "new_nodes": [], "insights": ""}


def test_validate_round_payload_accepts_null_lists():
    payload, error = validate_round_payload({"edges": None, "newNodes": None, "insights": "quiet round"})
    assert error == ""
    assert payload["edges"] == [] and payload["new_nodes"] == []
    assert payload["insights"] == "quiet round"


def test_validate_round_payload_rejects_non_objects_and_bad_lists():
    assert validate_round_payload([1, 2])[1].startswith("invalid_shape")
    assert validate_round_payload({"edges": {"from": "a"}})[1].startswith("invalid_shape")


def test_parse_with_fallback_uses_fallback_and_keeps_error():
    payload, error = parse_with_fallback("not json", validate_nodes_payload, lambda text: {"nodes": ["x"]})
    assert payload == {"nodes": ["x"]}
    assert error.startswith("json_decode_error")


def test_parse_nodes_from_text_skips_blank_and_brace_lines():
    text = "Shadow Integration\n\n{\n  \"oops\": true\n}\nCreative Renewal\n"
    nodes = parse_nodes_from_text(text)
    assert [node.label for node in nodes] == ["Shadow Integration", '"oops": true', "Creative Renewal"]
    assert [node.id for node in nodes] == ["node1", "node2", "node3"]
    assert all(node.type == "general" for node in nodes)


def test_parse_nodes_from_text_truncates_and_caps():
    lines = [f"{index} " + "x" * 80 for index in range(20)]
    nodes = parse_nodes_from_text("\n".join(lines))
    assert len(nodes) == FALLBACK_NODE_LIMIT
    assert all(len(node.label) <= FALLBACK_LABEL_LENGTH for node in nodes)
    assert nodes[-1].id == f"node{FALLBACK_NODE_LIMIT}"


def test_parse_nodes_from_text_of_json_lines_is_empty():
    assert parse_nodes_from_text(json.dumps({"nodes": [{"id": "n1"}]})) == []
