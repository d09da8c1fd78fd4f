import logging
from itertools import combinations
from typing import Dict, List, Optional, Tuple

import networkx as nx

from pcdiscover._protocol import EquivalenceClass
from pcdiscover.knowledge import Knowledge
from pcdiscover.typing import Column, SeparatingSet

logger = logging.getLogger()


class MeekRules:
    """Orient the edges of a skeleton into a partially directed graph.

    Orientation proceeds in three phases:

    0. Orient the edges constrained by the background knowledge. Required
       edges are oriented as required, and an edge whose one direction is
       forbidden is oriented the other way.
    1. Orient unshielded colliders 'X -> Z <- Y' whenever 'Z' is not in the
       separating set of 'X' and 'Y' :footcite:`Spirtes1993`.
    2. Propagate orientations with Meek's rules R1-R3, and R4 when there is
       background knowledge, until no rule applies :footcite:`Meek1995`.

    Parameters
    ----------
    knowledge : Knowledge, optional
        The background knowledge. No orientation ever contradicts it.
    aggressively_prevent_cycles : bool
        Whether to refuse any orientation 'u -> v' when there already is a
        directed path from 'v' to 'u', by default False.
    max_iter : int
        The maximum number of passes of the rules in phase 2, by default 1000.

    Attributes
    ----------
    orientations_ : list of tuple
        Every orientation applied, as ``(u, v, rule)`` for 'u -> v', in the
        order they were applied.

    Notes
    -----
    Orientation is monotonic: an edge is only ever oriented from undirected
    to directed, and the first orientation of an edge is kept. Two colliders
    that disagree on an edge therefore never produce a bidirected edge.

    References
    ----------
    .. footbibliography::
    """

    orientations_: List[Tuple[Column, Column, str]]

    def __init__(
        self,
        knowledge: Optional[Knowledge] = None,
        aggressively_prevent_cycles: bool = False,
        max_iter: int = 1000,
    ) -> None:
        if knowledge is None:
            knowledge = Knowledge()
        self.knowledge = knowledge
        self.aggressively_prevent_cycles = aggressively_prevent_cycles
        self.max_iter = max_iter
        self.orientations_ = []

    def apply(self, graph: EquivalenceClass, sep_set: SeparatingSet) -> EquivalenceClass:
        """Run all three phases of orientation on ``graph`` in place.

        Parameters
        ----------
        graph : EquivalenceClass
            The skeleton as a CPDAG with undirected edges.
        sep_set : SeparatingSet
            The separating sets of the skeleton search.

        Returns
        -------
        graph : EquivalenceClass
            The oriented graph.
        """
        self.orientations_ = []
        self.orient_with_knowledge(graph)
        self.orient_unshielded_triples(graph, sep_set)
        self.orient(graph)
        return graph

    def orient_with_knowledge(self, graph: EquivalenceClass) -> bool:
        """Orient the edges that the background knowledge constrains.

        Parameters
        ----------
        graph : EquivalenceClass
            The CPDAG.

        Returns
        -------
        changed : bool
            Whether any edge was oriented.
        """
        changed = False
        for u, v in self.knowledge.required_edges:
            if graph.has_edge(u, v, graph.undirected_edge_name):
                changed |= self._direct(graph, u, v, "knowledge")
            elif not graph.has_edge(u, v, graph.directed_edge_name):
                logger.warning(f"The required edge {u} -> {v} is not adjacent in the skeleton.")

        order = self._node_order(graph)
        for u, v in sorted(
            graph.undirected_edges, key=lambda edge: (order[edge[0]], order[edge[1]])
        ):
            if self.knowledge.is_forbidden(u, v) and not self.knowledge.is_forbidden(v, u):
                changed |= self._direct(graph, v, u, "knowledge")
            elif self.knowledge.is_forbidden(v, u) and not self.knowledge.is_forbidden(u, v):
                changed |= self._direct(graph, u, v, "knowledge")
        return changed

    def orient_unshielded_triples(self, graph: EquivalenceClass, sep_set: SeparatingSet) -> bool:
        """Orient colliders given a graph and separation set.

        Only pairs with a separating set are considered. Pairs that were never
        adjacent in the initial graph have none and are left alone.

        Parameters
        ----------
        graph : EquivalenceClass
            The CPDAG.
        sep_set : SeparatingSet
            The separating set between any two separated nodes.

        Returns
        -------
        changed : bool
            Whether any edge was oriented.
        """
        changed = False
        order = self._node_order(graph)

        # for every node in the CPDAG, evaluate neighbors that have any edge
        for u in order:
            nbrs = sorted(graph.neighbors(u), key=order.__getitem__)
            for v_i, v_j in combinations(nbrs, 2):
                # Check that there is no edge of any type between
                # v_i and v_j, else this is a "shielded" collider.
                if self._adjacent(graph, v_i, v_j):
                    continue

                pair = frozenset((v_i, v_j))
                if pair not in sep_set or u in sep_set[pair]:
                    continue

                if self._can_orient_into(graph, v_i, u) and self._can_orient_into(graph, v_j, u):
                    changed |= self._orient_collider(graph, v_i, u, v_j)
                else:
                    logger.info(
                        f"Not orienting collider {v_i} -> {u} <- {v_j}, it conflicts with "
                        f"existing orientations or knowledge."
                    )
        return changed

    def orient(self, graph: EquivalenceClass) -> bool:
        """Orient edges in a skeleton graph to estimate the causal DAG, or CPDAG.

        These are known as the Meek rules :footcite:`Meek1995`. They are deterministic
        in the sense that they are logical characterizations of what edges must be
        present given the rest of the local graph structure.

        Parameters
        ----------
        graph : EquivalenceClass
            The CPDAG with colliders oriented.

        Returns
        -------
        changed : bool
            Whether any edge was oriented. Running this again on its own
            output returns False.
        """
        rules = [self._apply_meek_rule1, self._apply_meek_rule2, self._apply_meek_rule3]
        # Rule 4 is only needed when knowledge orients edges that are not
        # implied by colliders
        if not self.knowledge.is_empty():
            rules.append(self._apply_meek_rule4)

        order = self._node_order(graph)
        changed = False
        idx = 0
        while idx < self.max_iter:
            change_flag = False
            for i in order:
                for j in sorted(graph.neighbors(i), key=order.__getitem__):
                    if not graph.has_edge(i, j, graph.undirected_edge_name):
                        continue
                    for rule in rules:
                        if rule(graph, i, j):
                            change_flag = True
                            break

            if not change_flag:
                logger.info(f"Finished applying R1-4, with {idx} iterations")
                break
            changed = True
            idx += 1
        else:
            logger.warning(f"Stopped applying R1-4 after max_iter={self.max_iter} iterations.")
        return changed

    def _orient_collider(
        self, graph: EquivalenceClass, v_i: Column, u: Column, v_j: Column
    ) -> bool:
        logger.info(
            f"orienting collider: {v_i} -> {u} and {v_j} -> {u} to make {v_i} -> {u} <- {v_j}."
        )
        added_i = self._direct(graph, v_i, u, "collider")
        added_j = self._direct(graph, v_j, u, "collider")
        return added_i or added_j

    def _apply_meek_rule1(self, graph: EquivalenceClass, i: Column, j: Column) -> bool:
        """Apply rule 1 of Meek's rules.

        Looks for i - j such that k -> i, such that (k,i,j)
        is an unshielded triple. Then can orient i - j as i -> j.
        """
        for k in self._parents(graph, i):
            # Skip if k and j are adjacent because then it is a
            # shielded triple
            if k == j or self._adjacent(graph, k, j):
                continue
            return self._direct(graph, i, j, "R1")
        return False

    def _apply_meek_rule2(self, graph: EquivalenceClass, i: Column, j: Column) -> bool:
        """Apply rule 2 of Meek's rules.

        Check for i - j, and then looks for i -> k -> j
        triple, to orient i - j as i -> j.
        """
        candidate_k = self._children(graph, i).intersection(self._parents(graph, j))
        if len(candidate_k) > 0:
            return self._direct(graph, i, j, "R2")
        return False

    def _apply_meek_rule3(self, graph: EquivalenceClass, i: Column, j: Column) -> bool:
        """Apply rule 3 of Meek's rules.

        Check for i - j, and then looks for k -> j <- l
        collider, and i - k and i - l, then orient i -> j.
        """
        parents_j = self._parents(graph, j)
        candidates = [
            k
            for k in graph.neighbors(i)
            if k in parents_j and graph.has_edge(i, k, graph.undirected_edge_name)
        ]
        for k, l in combinations(candidates, 2):
            # Skip if k and l are adjacent.
            if self._adjacent(graph, k, l):
                continue
            return self._direct(graph, i, j, "R3")
        return False

    def _apply_meek_rule4(self, graph: EquivalenceClass, i: Column, j: Column) -> bool:
        """Apply rule 4 of Meek's rules.

        Check for i - j, and then looks for a chain k -> l -> j with 'i'
        adjacent to 'k' and 'l', and 'k' not adjacent to 'j', then orient i -> j.
        """
        for l in self._parents(graph, j):
            if l == i or not self._adjacent(graph, i, l):
                continue
            for k in self._parents(graph, l):
                if k in (i, j) or not self._adjacent(graph, i, k):
                    continue
                if self._adjacent(graph, k, j):
                    continue
                return self._direct(graph, i, j, "R4")
        return False

    def _direct(self, graph: EquivalenceClass, u: Column, v: Column, rule: str) -> bool:
        """Orient the undirected edge 'u - v' as 'u -> v' if it is allowed.

        Every orientation goes through here. An edge that is already oriented
        is never changed.
        """
        if not graph.has_edge(u, v, graph.undirected_edge_name):
            return False
        if self.knowledge.is_forbidden(u, v) or self.knowledge.is_required(v, u):
            logger.debug(f"{rule}: not orienting {u} -> {v}, it contradicts the knowledge.")
            return False
        if self.aggressively_prevent_cycles and self._has_directed_path(graph, v, u):
            logger.info(f"{rule}: not orienting {u} -> {v}, it would create a cycle.")
            return False

        logger.info(f"{rule}: Removing edge {u}-{v} to form {u}->{v}.")
        graph.orient_uncertain_edge(u, v)
        self.orientations_.append((u, v, rule))
        return True

    def _can_orient_into(self, graph: EquivalenceClass, u: Column, v: Column) -> bool:
        """Whether the edge between 'u' and 'v' is, or could become, 'u -> v'."""
        if graph.has_edge(u, v, graph.directed_edge_name):
            return True
        if not graph.has_edge(u, v, graph.undirected_edge_name):
            return False
        if self.knowledge.is_forbidden(u, v) or self.knowledge.is_required(v, u):
            return False
        return not (self.aggressively_prevent_cycles and self._has_directed_path(graph, v, u))

    @staticmethod
    def _node_order(graph: EquivalenceClass) -> Dict[Column, int]:
        return {node: idx for idx, node in enumerate(graph.nodes)}

    @staticmethod
    def _adjacent(graph: EquivalenceClass, u: Column, v: Column) -> bool:
        return v in set(graph.neighbors(u))

    @staticmethod
    def _parents(graph: EquivalenceClass, node: Column) -> set:
        directed = graph.sub_directed_graph()
        if not directed.has_node(node):
            return set()
        return set(directed.predecessors(node))

    @staticmethod
    def _children(graph: EquivalenceClass, node: Column) -> set:
        directed = graph.sub_directed_graph()
        if not directed.has_node(node):
            return set()
        return set(directed.successors(node))

    @staticmethod
    def _has_directed_path(graph: EquivalenceClass, source: Column, target: Column) -> bool:
        directed = graph.sub_directed_graph()
        if not (directed.has_node(source) and directed.has_node(target)):
            return False
        return nx.has_path(directed, source, target)
