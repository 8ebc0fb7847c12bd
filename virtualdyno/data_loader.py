"""
Datalog file loading for dyno estimation
"""

import logging
from typing import List, Sequence

from .models import DatalogTable

logger = logging.getLogger(__name__)

DEFAULT_ENCODINGS = ('utf-8-sig', 'latin-1')


# Lazy imports for heavy dependencies
def _import_pandas():
    import pandas as pd
    return pd


class DataLoader:
    """Decodes CSV datalogs into a header + rows table"""

    def __init__(self, header_row: int = 0, units_row: bool = False,
                 encodings: Sequence[str] = DEFAULT_ENCODINGS, delimiter: str = ','):
        self.header_row = header_row
        self.units_row = units_row
        self.encodings = tuple(encodings)
        self.delimiter = delimiter

    def load_table(self, csv_path: str) -> DatalogTable:
        """
        Load a CSV datalog as raw text cells

        Cells are kept as strings; numeric conversion happens during sample
        ingestion so malformed rows can be counted instead of failing the load.

        Args:
            csv_path: Path to the datalog CSV

        Returns:
            DatalogTable with cleaned header names
        """
        pd = _import_pandas()
        last_error = None

        for encoding in self.encodings:
            try:
                data = pd.read_csv(
                    csv_path,
                    header=self.header_row,
                    skiprows=[self.header_row + 1] if self.units_row else None,
                    dtype=str,
                    keep_default_na=False,
                    skipinitialspace=True,
                    encoding=encoding,
                    sep=self.delimiter,
                )
                break
            except UnicodeDecodeError as e:
                last_error = e
                logger.debug("Could not decode %s as %s, trying next encoding", csv_path, encoding)
            except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
                raise ValueError(f"Error loading CSV data: {e}") from e
        else:
            raise ValueError(f"Error loading CSV data: {last_error}")

        headers = self._clean_headers(data.columns)
        rows = [list(row) for row in data.itertuples(index=False, name=None)]

        logger.info("Loaded %d rows with %d columns from %s", len(rows), len(headers), csv_path)
        logger.debug("Available columns: %s", ', '.join(headers))

        return DatalogTable(headers=tuple(headers), rows=rows)

    @staticmethod
    def _clean_headers(columns) -> List[str]:
        """Strip quotes and whitespace from column names"""
        return [str(col).strip('"').strip() for col in columns]
