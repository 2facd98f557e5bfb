import csv
import logging
import os

from shopscraper.errors import SinkError
from shopscraper.product_data import CSV_HEADER


class CsvSink:
    """Writes records as CSV: one header row, then one row per record."""

    def __init__(self, path, encoding="utf-8"):
        self.path = path
        self.encoding = encoding

    def write(self, records):
        """
        Write all records and return the number of data rows written.

        A row that fails to render or write is logged and skipped. Failing to
        create or open the output file raises SinkError.
        """
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            f = open(self.path, "w", newline="", encoding=self.encoding)
        except OSError as e:
            raise SinkError(f"Failed to create CSV file {self.path}: {e}") from e

        written = 0
        with f:
            writer = csv.writer(f)
            try:
                writer.writerow(CSV_HEADER)
            except (csv.Error, OSError) as e:
                raise SinkError(f"Failed to write CSV header to {self.path}: {e}") from e

            for record in records:
                try:
                    self._write_row(writer, record)
                except SinkError as e:
                    logging.warning(f"⚠️ {e}")
                    continue
                written += 1

        logging.info(f"✅ Successfully created CSV file: {self.path} ({written} rows)")
        return written

    @staticmethod
    def _write_row(writer, record):
        product_id = getattr(record, "product_id", None)
        try:
            writer.writerow(record.to_row())
        except (csv.Error, AttributeError, TypeError, UnicodeError, ValueError, OSError) as e:
            raise SinkError(
                f"Failed to write row for product {product_id} to CSV: {e}",
                product_id=product_id,
            ) from e
