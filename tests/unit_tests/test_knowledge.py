import pytest

from pcdiscover import Knowledge, KnowledgeConflict


def test_forbidden_and_required_edges():
    knowledge = Knowledge(forbidden_edges=[("x", "y")], required_edges=[("y", "z")])

    assert knowledge.is_forbidden("x", "y")
    assert not knowledge.is_forbidden("y", "x")
    assert knowledge.is_required("y", "z")
    assert not knowledge.is_required("z", "y")
    assert knowledge.is_required_edge("z", "y")
    assert not knowledge.is_forbidden_edge("x", "y")

    knowledge.set_forbidden("y", "x")
    assert knowledge.is_forbidden_edge("x", "y")
    assert knowledge.forbidden_edges == [("x", "y"), ("y", "x")]
    assert not knowledge.is_empty()
    assert Knowledge().is_empty()


def test_direct_conflicts_are_refused():
    knowledge = Knowledge(required_edges=[("x", "y")])
    with pytest.raises(KnowledgeConflict, match="required edge"):
        knowledge.set_forbidden("x", "y")

    knowledge = Knowledge(forbidden_edges=[("x", "y")])
    with pytest.raises(KnowledgeConflict, match="forbidden edge"):
        knowledge.set_required("x", "y")


def test_tiers():
    knowledge = Knowledge(tiers=[["a"], ["b", "c"]])
    assert knowledge.tiers == [["a"], ["b", "c"]]
    assert knowledge.tier_of("c") == 1
    assert knowledge.tier_of("d") is None

    # later tiers cannot cause earlier tiers
    assert knowledge.is_forbidden("b", "a")
    assert not knowledge.is_forbidden("a", "b")
    assert not knowledge.is_forbidden("b", "c")
    assert not knowledge.is_forbidden("d", "a")

    knowledge.set_tier_forbidden_within(1)
    assert knowledge.is_forbidden("b", "c")
    assert knowledge.is_forbidden_edge("b", "c")
    assert knowledge.forbidden_within_tiers == [1]

    knowledge.set_tier_forbidden_within(1, forbidden=False)
    assert not knowledge.is_forbidden("b", "c")

    with pytest.raises(ValueError, match="already placed in tier"):
        knowledge.add_to_tier(0, "b")
    with pytest.raises(ValueError, match="numbered from 0"):
        knowledge.add_to_tier(-1, "e")

    # placing a node in its own tier again is a no-op
    knowledge.add_to_tier(1, "b")
    assert knowledge.tiers == [["a"], ["b", "c"]]

    # tiers are created as needed
    knowledge.add_to_tier(3, "e")
    assert knowledge.tiers == [["a"], ["b", "c"], [], ["e"]]


@pytest.mark.parametrize(
    ("knowledge", "match"),
    [
        (Knowledge(required_edges=[("b", "a")], tiers=[["a"], ["b"]]), "against the tier order"),
        (
            Knowledge(required_edges=[("a", "b")], tiers=[["a", "b"]], forbidden_within_tiers=[0]),
            "forbidden within tier 0",
        ),
        (Knowledge(required_edges=[("a", "b"), ("b", "a")]), "required in both directions"),
    ],
)
def test_check_consistency(knowledge, match):
    with pytest.raises(KnowledgeConflict, match=match):
        knowledge.check_consistency()


def test_consistent_knowledge_passes():
    knowledge = Knowledge(
        forbidden_edges=[("c", "a")],
        required_edges=[("a", "b")],
        tiers=[["a"], ["b", "c"]],
    )
    knowledge.check_consistency()


def test_get_params():
    knowledge = Knowledge(forbidden_edges=[("x", "y")], default_to_knowledge_layout=True)
    params = knowledge.get_params()
    assert params["forbidden_edges"] == [("x", "y")]
    assert params["required_edges"] == []
    assert params["default_to_knowledge_layout"] is True
    assert "x" in repr(knowledge)


def test_set_params():
    knowledge = Knowledge(forbidden_edges=[("x", "y")], required_edges=[("y", "z")])
    knowledge.set_params(tiers=[["a"], ["b"]], forbidden_edges=[("z", "x")])

    assert knowledge.tiers == [["a"], ["b"]]
    assert knowledge.is_forbidden("b", "a")
    assert knowledge.forbidden_edges == [("z", "x")]
    assert not knowledge.is_forbidden("x", "y")

    knowledge.set_params(forbidden_within_tiers=[1], tiers=[["a", "b"], ["c", "d"]])
    assert knowledge.is_forbidden("c", "d")
    assert not knowledge.is_forbidden("a", "b")


def test_set_params_keeps_knowledge_on_conflict():
    knowledge = Knowledge(forbidden_edges=[("x", "y")], required_edges=[("y", "z")])
    with pytest.raises(KnowledgeConflict, match="required edge"):
        knowledge.set_params(forbidden_edges=[("a", "b"), ("y", "z")])
    assert knowledge.forbidden_edges == [("x", "y")]

    knowledge.set_params(tiers=[["a"], ["b"]])
    with pytest.raises(ValueError, match="already placed in tier"):
        knowledge.set_params(tiers=[["c"], ["c"]])
    assert knowledge.tiers == [["a"], ["b"]]
    assert knowledge.tier_of("c") is None
