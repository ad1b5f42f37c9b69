"""CSV export of weight logs and daily summaries."""

from steptdee.export.csv_export import export_csv, export_data_as_csv

__all__ = ["export_csv", "export_data_as_csv"]
