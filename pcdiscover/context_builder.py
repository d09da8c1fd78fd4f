import types
from typing import Iterable, List, Optional
from warnings import warn

import networkx as nx
import pandas as pd

from ._protocol import Graph
from .context import Context
from .knowledge import Knowledge
from .typing import Column

CALLABLES = types.FunctionType, types.MethodType


class ContextBuilder:
    """A builder class for creating Context objects ergonomically.

    The context builder provides a way to capture assumptions, domain knowledge,
    and data. This should NOT be instantiated directly. One should instead use
    `pcdiscover.make_context` to build a Context data structure.
    """

    _init_graph: Optional[Graph] = None
    _knowledge: Optional[Knowledge] = None
    _observed_variables: Optional[List[Column]] = None

    def __init__(self) -> None:
        # perform an error-check on subclass definitions of ContextBuilder
        for attribute, value in self.__class__.__dict__.items():
            if isinstance(value, CALLABLES) or isinstance(value, property):
                continue
            if attribute.startswith("__"):
                continue

            if not hasattr(self, attribute[1:]):
                raise RuntimeError(
                    f"Context objects has class attributes that do not have "
                    f"a matching class method to set the attribute, {attribute}. "
                    f"The form of the attribute must be '_<name>' and a "
                    f"corresponding function name '<name>'."
                )

    def init_graph(self, graph: Optional[Graph]) -> "ContextBuilder":
        """Set the partial graph to start with.

        Parameters
        ----------
        graph : Graph
            The graph whose adjacencies restrict the pairs of variables tested.
            It is never modified.

        Returns
        -------
        self : ContextBuilder
            The builder instance
        """
        self._init_graph = graph
        return self

    def knowledge(self, knowledge: Optional[Knowledge]) -> "ContextBuilder":
        """Set the background knowledge to apply in discovery.

        Parameters
        ----------
        knowledge : Knowledge
            Forbidden and required edges and tiers.

        Returns
        -------
        self : ContextBuilder
            The builder instance
        """
        self._knowledge = knowledge
        return self

    def observed_variables(self, observed: Optional[Iterable[Column]] = None) -> "ContextBuilder":
        """Set observed variables.

        Parameters
        ----------
        observed : iterable of Column
            The observed variables. Sets are sorted by their string form so
            that the search order is reproducible.
        """
        if observed is not None:
            if isinstance(observed, (set, frozenset)):
                observed = sorted(observed, key=str)
            observed = list(observed)
        self._observed_variables = observed
        return self

    def variables(
        self,
        observed: Optional[Iterable[Column]] = None,
        data: Optional[pd.DataFrame] = None,
    ) -> "ContextBuilder":
        """Set variable-list information to utilize in discovery.

        Parameters
        ----------
        observed : Optional[Iterable[Column]]
            The observed variables, by default None. If not set, the variables
            are the columns of ``data`` in their order.
        data : Optional[pd.DataFrame]
            The data to use for variable inference.

        Returns
        -------
        self : ContextBuilder
            The builder instance
        """
        if observed is None and data is not None:
            observed = list(data.columns)
        elif observed is not None and data is not None:
            missing = set(observed) - set(data.columns)
            if missing:
                raise ValueError(f"The observed variables {missing} are not columns of the data.")

        self.observed_variables(observed)
        if self._observed_variables is None:
            raise ValueError("Could not infer variables from data or given arguments.")
        return self

    def build(self) -> Context:
        """Build the Context object.

        Returns
        -------
        context : Context
            The populated Context object.
        """
        if self._observed_variables is None:
            raise ValueError("Could not infer variables from data or given arguments.")

        knowledge = self._knowledge if self._knowledge is not None else Knowledge()
        self._check_knowledge_variables(knowledge)
        return Context(
            observed_variables=list(self._observed_variables),
            init_graph=self._interpolate_graph(self._observed_variables),
            knowledge=knowledge,
        )

    def _check_knowledge_variables(self, knowledge: Knowledge) -> None:
        variables = set(self._observed_variables)  # type: ignore
        mentioned = set()
        for u, v in knowledge.forbidden_edges + knowledge.required_edges:
            mentioned.update((u, v))
        for tier in knowledge.tiers:
            mentioned.update(tier)

        unknown = mentioned - variables
        if unknown:
            warn(f"The knowledge refers to variables that are not observed: {unknown}.")

    def _interpolate_graph(self, graph_variables) -> nx.Graph:
        if self._init_graph is None:
            return nx.complete_graph(graph_variables, create_using=nx.Graph)

        if not set(self._init_graph.nodes).issuperset(set(graph_variables)):
            raise ValueError(
                f"The nodes within the initial graph, {self._init_graph.nodes}, "
                f"do not match the nodes in the passed in data, {graph_variables}."
            )
        return self._init_graph


def make_context(context: Optional[Context] = None) -> ContextBuilder:
    """Create a new ContextBuilder instance.

    Parameters
    ----------
    context : Context, optional
        An existing context whose variables, initial graph and knowledge
        are copied into the new builder.

    Returns
    -------
    result : ContextBuilder
        The new ContextBuilder instance

    Examples
    --------
    This creates a context object denoting that there are three observed
    variables, ``(1, 2, 3)``.
    >>> context_builder = make_context()
    >>> context = context_builder.variables([1, 2, 3]).build()
    """
    result = ContextBuilder()
    if context is not None:
        ctx_params = context.get_params(deep=False)
        for param, value in ctx_params.items():
            if getattr(result, param, None) is not None:
                getattr(result, param)(value)

    return result
