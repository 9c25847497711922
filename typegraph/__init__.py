"""typegraph: inspect Python modules and graph the dependencies between their types."""

__version__ = "0.1.0"
