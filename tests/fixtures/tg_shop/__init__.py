"""Shop domain used by the typegraph tests."""
