"""Export sinks."""

from typegraph.exporter.csv_exporter import export_csv, iter_rows

__all__ = ["export_csv", "iter_rows"]
