from enum import Enum
from typing import Dict, List

import pandas as pd

from .typing import Column


class VariableType(Enum):
    """Domain type of a variable."""

    CONTINUOUS = "continuous"
    DISCRETE = "discrete"


def infer_variable_types(data: pd.DataFrame) -> Dict[Column, VariableType]:
    """Infer the domain type of every column from its dtype.

    Floating point columns are continuous. Integer, boolean, categorical
    and object columns are discrete.

    Parameters
    ----------
    data : pd.DataFrame
        The dataset.

    Returns
    -------
    types : dict
        Mapping of each column to its VariableType.
    """
    types = dict()
    for column in data.columns:
        if pd.api.types.is_float_dtype(data[column]):
            types[column] = VariableType.CONTINUOUS
        else:
            types[column] = VariableType.DISCRETE
    return types


def is_continuous(data: pd.DataFrame) -> bool:
    """Whether every column of ``data`` is continuous."""
    return all(vtype == VariableType.CONTINUOUS for vtype in infer_variable_types(data).values())


def center_data(data: pd.DataFrame) -> pd.DataFrame:
    """Center every column of a continuous dataset on its mean.

    Parameters
    ----------
    data : pd.DataFrame
        A dataset with only continuous columns.

    Returns
    -------
    centered : pd.DataFrame
        A copy of ``data`` where every column has zero mean.

    Raises
    ------
    ValueError
        If any column of the data is not continuous.
    """
    discrete = [
        column
        for column, vtype in infer_variable_types(data).items()
        if vtype != VariableType.CONTINUOUS
    ]
    if discrete:
        raise ValueError(f"Not a continuous data set, the columns {discrete} are discrete.")
    return data - data.mean(axis=0)


def pool_datasets(datasets: List[pd.DataFrame], center: bool = True) -> pd.DataFrame:
    """Stack several datasets over the same variables into one.

    Parameters
    ----------
    datasets : list of pd.DataFrame
        The datasets. They must all have the same columns in the same order.
    center : bool
        Whether to center each dataset before pooling when all of them are
        continuous, by default True. This removes differences in means
        between the datasets, which would otherwise induce spurious
        dependences in the pooled data.

    Returns
    -------
    pooled : pd.DataFrame
        The row-wise concatenation of the datasets, with a fresh index.
    """
    if len(datasets) == 0:
        raise ValueError("At least one dataset is needed to pool datasets.")

    columns = list(datasets[0].columns)
    for idx, data in enumerate(datasets[1:], start=1):
        if list(data.columns) != columns:
            raise ValueError(
                f"All datasets must have the same columns. Dataset {idx} has "
                f"{list(data.columns)}, but dataset 0 has {columns}."
            )

    if center and all(is_continuous(data) for data in datasets):
        datasets = [center_data(data) for data in datasets]
    return pd.concat(datasets, axis=0, ignore_index=True)
