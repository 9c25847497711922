"""JSON API over scanned modules and their dependency graphs."""

from typegraph.web.app import create_app

__all__ = ["create_app"]
