from rhizome_map.graph_model import Edge, GraphState, Node
from rhizome_map.graph_orchestrator import GraphOrchestrator


def _seeded() -> GraphOrchestrator:
    return GraphOrchestrator(GraphState(nodes=[Node("n1", "The Tower", "symbol"), Node("n2", "Hope", "emotion")]))


def test_merge_round_appends_in_order():
    orchestrator = _seeded()
    added_edges, added_nodes = orchestrator.merge_round(
        [Edge("n1", "n2", "collapse makes room for")],
        [Node("n3", "Renewal", "theme")],
    )
    assert (added_edges, added_nodes) == (1, 1)
    assert [node.id for node in orchestrator.state.nodes] == ["n1", "n2", "n3"]
    assert orchestrator.counts() == (3, 1)


def test_merge_round_does_not_deduplicate():
    orchestrator = _seeded()
    orchestrator.merge_round([], [Node("n9", "Hope", "emotion")])
    orchestrator.merge_round([Edge("n1", "n2", "x"), Edge("n1", "n2", "x")], [])
    assert [node.label for node in orchestrator.state.nodes].count("Hope") == 2
    assert len(orchestrator.state.edges) == 2


def test_checkpoint_is_isolated_from_later_growth():
    orchestrator = _seeded()
    orchestrator.add_edges([Edge("n1", "n2", "first")])
    checkpoint = orchestrator.checkpoint(1, "first links")

    orchestrator.merge_round([Edge("n2", "n1", "second")], [Node("n3", "Renewal")])

    assert checkpoint.node_count == 2 and checkpoint.edge_count == 1
    assert len(checkpoint.nodes) == 2 and len(checkpoint.edges) == 1
    assert checkpoint.insights_text == "first links"
    assert orchestrator.counts() == (3, 2)


def test_orchestrator_mutates_the_state_it_was_given():
    state = GraphState()
    GraphOrchestrator(state).add_nodes([Node("n1", "Fool")])
    assert state.nodes == [Node("n1", "Fool")]


def test_counts_track_the_wrapped_state():
    orchestrator = _seeded()
    assert orchestrator.counts() == (2, 0)
    orchestrator.add_edges([Edge("n1", "n2", "echoes")])
    assert orchestrator.counts() == (2, 1)
    assert orchestrator.state.to_dict()["edges"] == [{"from": "n1", "to": "n2", "relationship": "echoes"}]
