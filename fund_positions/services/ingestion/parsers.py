# fund_positions/services/ingestion/parsers.py
"""
CSV parsers for the two ledger files.

Expected formats (header row required, skipped by position):

    trade_history.csv
        user_id,fund_id,quantity,trade_date
        u1,1,20000,2024-01-10

    reference_prices.csv
        fund_id,price,price_date
        1,100.00,2024-01-10

Columns are positional; header names are not checked. Leading whitespace
in each field is ignored. Every data row must have exactly the expected
number of columns. Dates must be YYYY-MM-DD.

Parsers only parse: they collect every row error they find and never
touch the database. LedgerImportService decides what to do with errors.
"""

import csv
import dataclasses
import io
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, BinaryIO

from fund_positions.services.constants import (
    TRADE_HISTORY_COLUMNS,
    REFERENCE_PRICE_COLUMNS,
    PRICE_MAX_DIGITS,
    PRICE_DECIMAL_PLACES,
    DATE_FORMAT_HINT,
    ZERO,
)
from fund_positions.utils.date_utils import parse_iso_date

logger = logging.getLogger(__name__)

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")

# user_id column is VARCHAR(255)
USER_ID_MAX_LENGTH = 255


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class TradeRow:
    """One parsed line of trade_history.csv."""

    row_number: int
    user_id: str
    fund_id: int
    quantity: int
    trade_date: date


@dataclass(frozen=True)
class PriceRow:
    """One parsed line of reference_prices.csv."""

    row_number: int
    fund_id: int
    price: Decimal
    price_date: date


@dataclass
class ParseError:
    """
    A problem found in one row (row_number 0 for file-level problems).

    Attributes:
        row_number: 1-based line number in the file (header is line 1)
        error_type: Category, e.g. "column_count", "invalid_date"
        message: Human-readable description
        field: Column that failed, if any
        raw_data: The raw fields of the row
    """

    row_number: int
    error_type: str
    message: str
    field: str | None = None
    raw_data: list[str] = dataclasses.field(default_factory=list)

    def __str__(self) -> str:
        where = f"row {self.row_number}" if self.row_number else "file"
        return f"{where}: {self.message}"


@dataclass
class ParseResult:
    """
    Rows parsed from one file plus every error encountered.

    Attributes:
        rows: Successfully parsed rows
        errors: Row and file level errors
        total_rows: Data rows read (header and blank lines excluded)
    """

    rows: list[Any] = field(default_factory=list)
    errors: list[ParseError] = field(default_factory=list)
    total_rows: int = 0

    @property
    def success_count(self) -> int:
        return len(self.rows)

    @property
    def error_count(self) -> int:
        return len(self.errors)

    @property
    def all_successful(self) -> bool:
        """True if no row failed (an empty data section counts as success)."""
        return self.error_count == 0


class _FieldError(ValueError):
    """Internal signal carrying the failing column and error type."""

    def __init__(self, field_name: str, error_type: str, message: str) -> None:
        self.field_name = field_name
        self.error_type = error_type
        super().__init__(message)


# =============================================================================
# ABSTRACT BASE CLASS
# =============================================================================

class LedgerCsvParser(ABC):
    """
    Base class for positional ledger CSV parsers.

    Subclasses declare their columns and convert one raw record into a row.
    """

    #: Short name used in log and error messages
    name: str = ""
    #: Column names in file order
    columns: tuple[str, ...] = ()
    #: Exact number of fields per data row
    expected_columns: int = 0

    def parse(self, file: BinaryIO, filename: str) -> ParseResult:
        """
        Parse a ledger CSV.

        Args:
            file: Binary file object
            filename: Name used in log messages

        Returns:
            ParseResult with parsed rows and errors
        """
        logger.info(f"Parsing {self.name} file: {filename}")

        result = ParseResult()

        try:
            content = self._read_file_content(file)
        except OSError as e:
            logger.error(f"Failed to read file {filename}: {e}")
            result.errors.append(ParseError(
                row_number=0,
                error_type="file_read_error",
                message=f"Could not read file: {e}",
            ))
            return result

        reader = csv.reader(io.StringIO(content), skipinitialspace=True)

        try:
            header = next(reader, None)
            if header is None:
                result.errors.append(ParseError(
                    row_number=0,
                    error_type="empty_file",
                    message=f"{filename} is empty (header row missing)",
                ))
                return result

            for record in reader:
                row_number = reader.line_num
                if not record:
                    continue  # blank line

                result.total_rows += 1
                row, error = self._parse_line(row_number, record)
                if error:
                    result.errors.append(error)
                else:
                    result.rows.append(row)

        except csv.Error as e:
            logger.error(f"CSV parsing error in {filename}: {e}")
            result.errors.append(ParseError(
                row_number=reader.line_num,
                error_type="csv_format_error",
                message=f"Invalid CSV format: {e}",
            ))

        logger.info(
            f"Parsed {filename}: {result.success_count} rows OK, "
            f"{result.error_count} errors"
        )
        return result

    def _parse_line(self, row_number: int, record: list[str]) -> tuple[Any | None, ParseError | None]:
        if len(record) != self.expected_columns:
            return None, ParseError(
                row_number=row_number,
                error_type="column_count",
                message=(
                    f"Expected {self.expected_columns} columns "
                    f"({', '.join(self.columns)}), got {len(record)}"
                ),
                raw_data=record,
            )

        try:
            return self._parse_record(row_number, record), None
        except _FieldError as e:
            return None, ParseError(
                row_number=row_number,
                error_type=e.error_type,
                message=str(e),
                field=e.field_name,
                raw_data=record,
            )

    @abstractmethod
    def _parse_record(self, row_number: int, record: list[str]) -> Any:
        """Convert one raw record with the right column count into a row."""

    # =========================================================================
    # FIELD CONVERTERS
    # =========================================================================

    @staticmethod
    def _parse_int(value: str, field_name: str) -> int:
        value = value.strip()
        if not _INTEGER_RE.fullmatch(value):
            raise _FieldError(field_name, "invalid_integer", f"{field_name} '{value}' is not an integer")
        return int(value)

    @staticmethod
    def _parse_date(value: str, field_name: str) -> date:
        value = value.strip()
        try:
            return parse_iso_date(value)
        except ValueError:
            raise _FieldError(
                field_name,
                "invalid_date",
                f"{field_name} '{value}' is not a valid {DATE_FORMAT_HINT} date",
            ) from None

    @staticmethod
    def _parse_price(value: str, field_name: str) -> Decimal:
        value = value.strip()
        try:
            price = Decimal(value)
        except InvalidOperation:
            raise _FieldError(field_name, "invalid_decimal", f"{field_name} '{value}' is not a number") from None

        if not price.is_finite():
            raise _FieldError(field_name, "invalid_decimal", f"{field_name} '{value}' is not a number")
        if price < ZERO:
            raise _FieldError(field_name, "negative_value", f"{field_name} '{value}' must not be negative")

        exponent = price.as_tuple().exponent
        if -exponent > PRICE_DECIMAL_PLACES:
            raise _FieldError(
                field_name,
                "invalid_precision",
                f"{field_name} '{value}' has more than {PRICE_DECIMAL_PLACES} decimal places",
            )

        quantized = price.quantize(Decimal(1).scaleb(-PRICE_DECIMAL_PLACES))
        if len(quantized.as_tuple().digits) > PRICE_MAX_DIGITS:
            raise _FieldError(
                field_name,
                "out_of_range",
                f"{field_name} '{value}' exceeds DECIMAL({PRICE_MAX_DIGITS}, {PRICE_DECIMAL_PLACES})",
            )
        return quantized

    @staticmethod
    def _read_file_content(file: BinaryIO) -> str:
        """
        Read and decode file content.

        UTF-8 (with or without BOM), falling back to Latin-1.
        """
        raw_content = file.read()
        if isinstance(raw_content, str):
            return raw_content

        try:
            return raw_content.decode("utf-8-sig")
        except UnicodeDecodeError:
            pass

        logger.warning("File is not UTF-8, falling back to Latin-1 encoding")
        return raw_content.decode("latin-1")


# =============================================================================
# PARSERS
# =============================================================================

class TradeHistoryCsvParser(LedgerCsvParser):
    """Parser for trade_history.csv (user_id, fund_id, quantity, trade_date)."""

    name = "trade history"
    columns = ("user_id", "fund_id", "quantity", "trade_date")
    expected_columns = TRADE_HISTORY_COLUMNS

    def _parse_record(self, row_number: int, record: list[str]) -> TradeRow:
        user_id = record[0].strip()
        if not user_id:
            raise _FieldError("user_id", "missing_field", "user_id is empty")
        if len(user_id) > USER_ID_MAX_LENGTH:
            raise _FieldError(
                "user_id",
                "too_long",
                f"user_id is longer than {USER_ID_MAX_LENGTH} characters",
            )

        return TradeRow(
            row_number=row_number,
            user_id=user_id,
            fund_id=self._parse_int(record[1], "fund_id"),
            quantity=self._parse_int(record[2], "quantity"),
            trade_date=self._parse_date(record[3], "trade_date"),
        )


class ReferencePriceCsvParser(LedgerCsvParser):
    """Parser for reference_prices.csv (fund_id, price, price_date)."""

    name = "reference price"
    columns = ("fund_id", "price", "price_date")
    expected_columns = REFERENCE_PRICE_COLUMNS

    def _parse_record(self, row_number: int, record: list[str]) -> PriceRow:
        return PriceRow(
            row_number=row_number,
            fund_id=self._parse_int(record[0], "fund_id"),
            price=self._parse_price(record[1], "price"),
            price_date=self._parse_date(record[2], "price_date"),
        )

