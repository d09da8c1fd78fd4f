from typing import Dict, Iterable, List, Optional, Set, Tuple

from .base import BasePCDiscover
from .exceptions import KnowledgeConflict
from .typing import Column


class Knowledge(BasePCDiscover):
    """Background knowledge constraining the edges of a search.

    Parameters
    ----------
    forbidden_edges : iterable of tuple, optional
        Directed edges ``(u, v)`` meaning ``u -> v`` must not appear in the
        result. Forbidding both directions removes the adjacency altogether.
    required_edges : iterable of tuple, optional
        Directed edges ``(u, v)`` meaning ``u -> v`` must appear in the result.
    tiers : list of list, optional
        A temporal ordering of the variables. A variable in a later tier can
        never cause a variable in an earlier tier. Variables not placed in
        any tier are unconstrained.
    forbidden_within_tiers : iterable of int, optional
        Indices of the tiers whose variables cannot cause each other.
    default_to_knowledge_layout : bool
        Whether the result graph should be laid out by tiers when no source
        graph is available, by default False.

    Notes
    -----
    The knowledge object is read-only while a search runs. Conflicts between
    the required edges and the other constraints are reported by
    :meth:`check_consistency`, which every search calls before it starts.
    """

    def __init__(
        self,
        forbidden_edges: Optional[Iterable[Tuple[Column, Column]]] = None,
        required_edges: Optional[Iterable[Tuple[Column, Column]]] = None,
        tiers: Optional[List[List[Column]]] = None,
        forbidden_within_tiers: Optional[Iterable[int]] = None,
        default_to_knowledge_layout: bool = False,
    ) -> None:
        # dictionaries are used as ordered sets, so orientation from knowledge
        # is applied in the order the user specified it
        self._forbidden: Dict[Tuple[Column, Column], None] = dict()
        self._required: Dict[Tuple[Column, Column], None] = dict()
        self._tier_of: Dict[Column, int] = dict()
        self._tiers: List[List[Column]] = []
        self._forbidden_within: Set[int] = set()
        self.default_to_knowledge_layout = default_to_knowledge_layout

        self.forbidden_edges = forbidden_edges
        self.required_edges = required_edges
        self.tiers = tiers
        self.forbidden_within_tiers = forbidden_within_tiers

    # the setters refill the stores through the mutators, so that conflicts
    # are checked, and leave the knowledge unchanged when one is found
    @property
    def forbidden_edges(self) -> List[Tuple[Column, Column]]:
        return list(self._forbidden)

    @forbidden_edges.setter
    def forbidden_edges(self, edges: Optional[Iterable[Tuple[Column, Column]]]) -> None:
        previous = self._forbidden
        self._forbidden = dict()
        try:
            for u, v in edges or []:
                self.set_forbidden(u, v)
        except KnowledgeConflict:
            self._forbidden = previous
            raise

    @property
    def required_edges(self) -> List[Tuple[Column, Column]]:
        return list(self._required)

    @required_edges.setter
    def required_edges(self, edges: Optional[Iterable[Tuple[Column, Column]]]) -> None:
        previous = self._required
        self._required = dict()
        try:
            for u, v in edges or []:
                self.set_required(u, v)
        except KnowledgeConflict:
            self._required = previous
            raise

    @property
    def tiers(self) -> List[List[Column]]:
        return [list(tier) for tier in self._tiers]

    @tiers.setter
    def tiers(self, tiers: Optional[List[List[Column]]]) -> None:
        previous = self._tiers, self._tier_of
        self._tiers, self._tier_of = [], dict()
        try:
            for idx, tier in enumerate(tiers or []):
                for node in tier:
                    self.add_to_tier(idx, node)
        except ValueError:
            self._tiers, self._tier_of = previous
            raise

    @property
    def forbidden_within_tiers(self) -> List[int]:
        return sorted(self._forbidden_within)

    @forbidden_within_tiers.setter
    def forbidden_within_tiers(self, tiers: Optional[Iterable[int]]) -> None:
        self._forbidden_within = set()
        for idx in tiers or []:
            self.set_tier_forbidden_within(idx)

    def set_forbidden(self, u: Column, v: Column) -> "Knowledge":
        """Forbid the directed edge ``u -> v``."""
        if (u, v) in self._required:
            raise KnowledgeConflict(f"{(u, v)} is already specified as a required edge.")
        self._forbidden[(u, v)] = None
        return self

    def set_required(self, u: Column, v: Column) -> "Knowledge":
        """Require the directed edge ``u -> v``."""
        if (u, v) in self._forbidden:
            raise KnowledgeConflict(f"{(u, v)} is already specified as a forbidden edge.")
        self._required[(u, v)] = None
        return self

    def add_to_tier(self, tier: int, node: Column) -> "Knowledge":
        """Place ``node`` in tier number ``tier``, creating empty tiers as needed."""
        if tier < 0:
            raise ValueError(f"Tiers are numbered from 0, not {tier}.")
        if node in self._tier_of and self._tier_of[node] != tier:
            raise ValueError(f"{node} is already placed in tier {self._tier_of[node]}.")
        while len(self._tiers) <= tier:
            self._tiers.append([])
        if node not in self._tier_of:
            self._tiers[tier].append(node)
            self._tier_of[node] = tier
        return self

    def set_tier_forbidden_within(self, tier: int, forbidden: bool = True) -> "Knowledge":
        """Forbid (or allow again) edges among the variables of one tier."""
        if forbidden:
            self._forbidden_within.add(tier)
        else:
            self._forbidden_within.discard(tier)
        return self

    def tier_of(self, node: Column) -> Optional[int]:
        """The tier of ``node``, or None if it was not placed in any tier."""
        return self._tier_of.get(node)

    def is_empty(self) -> bool:
        return not (self._forbidden or self._required or self._tier_of)

    def is_forbidden(self, u: Column, v: Column) -> bool:
        """Whether ``u -> v`` is forbidden, explicitly or by the tier ordering."""
        if (u, v) in self._forbidden:
            return True

        tier_u = self._tier_of.get(u)
        tier_v = self._tier_of.get(v)
        if tier_u is None or tier_v is None:
            return False
        if tier_u > tier_v:
            return True
        return tier_u == tier_v and tier_u in self._forbidden_within

    def is_required(self, u: Column, v: Column) -> bool:
        """Whether ``u -> v`` is required."""
        return (u, v) in self._required

    def is_forbidden_edge(self, u: Column, v: Column) -> bool:
        """Whether ``u`` and ``v`` cannot be adjacent at all."""
        return self.is_forbidden(u, v) and self.is_forbidden(v, u)

    def is_required_edge(self, u: Column, v: Column) -> bool:
        """Whether ``u`` and ``v`` must be adjacent, in either direction."""
        return self.is_required(u, v) or self.is_required(v, u)

    def check_consistency(self) -> None:
        """Check that no required edge is forbidden.

        Raises
        ------
        KnowledgeConflict
            If a required edge is forbidden explicitly, by the tier ordering,
            or within its tier, or if an edge is required in both directions.
        """
        for u, v in self._required:
            if self.is_forbidden(u, v):
                if (u, v) in self._forbidden:
                    reason = "explicitly forbidden"
                elif self._tier_of[u] == self._tier_of[v]:
                    reason = f"forbidden within tier {self._tier_of[u]}"
                else:
                    reason = (
                        f"against the tier order ({u} in tier {self._tier_of[u]}, "
                        f"{v} in tier {self._tier_of[v]})"
                    )
                raise KnowledgeConflict(f"The required edge {u} -> {v} is {reason}.")
            if (v, u) in self._required:
                raise KnowledgeConflict(
                    f"The edge between {u} and {v} is required in both directions."
                )

    def __repr__(self) -> str:
        return (
            f"Knowledge(forbidden={self.forbidden_edges}, required={self.required_edges}, "
            f"tiers={self.tiers}, forbidden_within_tiers={self.forbidden_within_tiers})"
        )
