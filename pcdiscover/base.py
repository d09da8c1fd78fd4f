import inspect
from collections import defaultdict
from copy import deepcopy


class BasePCDiscover:
    """Base class for pcdiscover objects configured through their constructor.

    Notes
    -----
    All subclasses should specify all the parameters that can be set
    at the class level in their ``__init__`` as explicit keyword
    arguments (no ``*args`` or ``**kwargs``). Each parameter must be
    stored on an attribute of the same name.
    """

    @classmethod
    def _get_param_names(cls):
        """Get parameter names for the object."""
        init = cls.__init__
        if init is object.__init__:
            # No explicit constructor to introspect
            return []

        init_signature = inspect.signature(init)
        parameters = [
            p
            for p in init_signature.parameters.values()
            if p.name != "self" and p.kind != p.VAR_KEYWORD
        ]
        for p in parameters:
            if p.kind == p.VAR_POSITIONAL:
                raise RuntimeError(
                    "pcdiscover objects should always specify their parameters in the "
                    f"signature of their __init__ (no varargs). {cls} with constructor "
                    f"{init_signature} doesn't follow this convention."
                )
        return sorted([p.name for p in parameters])

    def get_params(self, deep=True):
        """Get parameters for this object.

        Parameters
        ----------
        deep : bool, default=True
            If True, parameter values are deep-copied, which is useful
            for graphs.

        Returns
        -------
        params : dict
            Parameter names mapped to their values.
        """
        out = dict()
        for key in self._get_param_names():
            value = getattr(self, key)

            if deep and hasattr(value, "get_params") and not isinstance(value, type):
                deep_items = value.get_params().items()
                out.update((key + "__" + k, val) for k, val in deep_items)
            elif deep and not isinstance(value, type):
                value = deepcopy(value)

            out[key] = value
        return out

    def set_params(self, **params):
        """Set the parameters of this object.

        Nested objects are updated with parameters of the form
        ``<component>__<parameter>``.

        Parameters
        ----------
        **params : dict
            Object parameters.

        Returns
        -------
        self : instance
            The updated instance.
        """
        if not params:
            return self
        valid_params = self.get_params(deep=True)

        nested_params = defaultdict(dict)  # grouped by prefix
        for key, value in params.items():
            key, delim, sub_key = key.partition("__")
            if key not in valid_params:
                raise ValueError(
                    f"Invalid parameter {key!r} for {self}. "
                    f"Valid parameters are: {self._get_param_names()!r}."
                )

            if delim:
                nested_params[key][sub_key] = value
            else:
                setattr(self, key, value)
                valid_params[key] = value

        for key, sub_params in nested_params.items():
            getattr(self, key).set_params(**sub_params)

        return self
