from typing import Optional, Set

import networkx as nx
import numpy as np
import pandas as pd

from pcdiscover.typing import Column

from .base import BaseConditionalIndependenceTest


class Oracle(BaseConditionalIndependenceTest):
    """Oracle conditional independence testing.

    Used for unit testing, checking intuition and running a search against
    a known causal DAG.

    Parameters
    ----------
    graph : nx.DiGraph
        The ground-truth causal graph.
    included_nodes : set, optional
        Nodes that are always added to the conditioning set, for example
        selection variables.
    """

    _allow_multivariate_input: bool = True

    def __init__(self, graph: nx.DiGraph, included_nodes: Optional[Set[Column]] = None) -> None:
        if not nx.is_directed_acyclic_graph(graph):
            raise ValueError("The graph of a d-separation oracle must be a DAG.")
        self.graph = graph
        self.included_nodes = included_nodes

    def test(
        self,
        df: pd.DataFrame,
        x_vars: Set[Column],
        y_vars: Set[Column],
        z_covariates: Optional[Set[Column]] = None,
    ):
        """Conditional independence test given an oracle.

        Checks conditional independence between 'x_vars' and 'y_vars'
        given 'z_covariates' of variables using the causal graph
        as an oracle. The oracle uses d-separation statements given
        the graph to query conditional independences. This is known
        as the Markov property for graphs
        :footcite:`Pearl_causality_2009,Spirtes1993`.

        Parameters
        ----------
        df : pd.DataFrame of shape (n_samples, n_variables)
            The data matrix. Passed in for API consistency, but not
            used.
        x_vars : node
            A node in the dataset.
        y_vars : node
            A node in the dataset.
        z_covariates : set
            The set of variables to check that separates x_vars and y_vars.

        Returns
        -------
        statistic : float
            ``0`` if independent and ``inf`` otherwise.
        pvalue : float
            The pvalue. Return '1.0' if independent and '0.0'
            if they are not.

        References
        ----------
        .. footbibliography::
        """
        self._check_test_input(df, x_vars, y_vars, z_covariates)
        if z_covariates is None:
            z_covariates = set()

        # generate a set of included nodes always in the Z-covariates
        if self.included_nodes is None:
            included_nodes = set()
        else:
            included_nodes = (
                set(self.included_nodes).difference(set(x_vars)).difference(set(y_vars))
            )
        z_covariates = set(z_covariates).union(included_nodes)

        is_sep = nx.is_d_separator(self.graph, set(x_vars), set(y_vars), z_covariates)

        if is_sep:
            pvalue = 1.0
            test_stat = 0.0
        else:
            pvalue = 0.0
            test_stat = np.inf
        return test_stat, pvalue
