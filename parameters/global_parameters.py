# global_parameters.py

# Tracer and height-field settings with their defaults. ``step_size`` of
# ``None`` means "use the mesh grid spacing" (length of the first edge).
DEFAULT_PARAMETERS = {
    "step_size": None,
    "num_steps": 100,
    "height_factor": 1.0,
}

_COERCE = {
    "step_size": lambda v: None if v is None else float(v),
    "num_steps": int,
    "height_factor": float,
}


class GlobalParameters:
    """Mesh-wide settings shared by the tracer, the height field and the CLI.

    Values are stored in one dict and are reachable both as ``params.get(key)``
    and as attributes (``params.num_steps``). Known keys are coerced to their
    numeric type on assignment; unknown keys are stored as given so mesh
    documents can carry extra metadata through a load/save cycle.
    """

    def __init__(self, initial_params=None):
        self._params = dict(DEFAULT_PARAMETERS)
        if initial_params:
            self.update(initial_params)

    def __getattr__(self, name):
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            return params[name]
        raise AttributeError(
            f"{type(self).__name__!s} object has no attribute {name!r}"
        )

    def __setattr__(self, name, value):
        if name == "_params":
            object.__setattr__(self, name, value)
            return
        params = self.__dict__.get("_params")
        if params is not None and name in params:
            self.set(name, value)
            return
        object.__setattr__(self, name, value)

    def get(self, key, default=None):
        return self._params.get(key, default)

    def set(self, key, value):
        """Store ``value`` under ``key``, coercing known numeric settings.

        Raises:
            ValueError: if a known setting cannot be converted.
        """
        coerce = _COERCE.get(key)
        if coerce is not None:
            try:
                value = coerce(value)
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Invalid value {value!r} for '{key}'") from exc
        self._params[key] = value

    def update(self, params):
        for key, value in dict(params).items():
            self.set(key, value)

    def copy(self):
        return GlobalParameters(self._params)

    def __contains__(self, key):
        return key in self._params

    def __repr__(self):
        return f"GlobalParameters({self._params})"

    def to_dict(self):
        """Plain-dict snapshot suitable for JSON/YAML serialization."""
        return dict(self._params)
