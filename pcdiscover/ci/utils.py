from typing import Iterable

import pandas as pd

from pcdiscover.typing import Column


def dummy_sample(nodes: Iterable[Column]) -> pd.DataFrame:
    """Sample an empty dataframe with columns as the nodes.

    Used for oracle testing.

    Parameters
    ----------
    nodes : iterable of Column
        The variables, for example the nodes of a graph.
    """
    return pd.DataFrame({column: [] for column in nodes})
