# fund_positions/services/ingestion/service.py
"""
Ledger import service.

Loads trade_history.csv and reference_prices.csv into their tables:
1. Parse the file (positional CSV, header skipped)
2. Reject the whole file on any row error or duplicate primary key
3. Insert every row in one transaction

Design Principles:
- Atomic commits: all rows of a file are saved or none
- Detailed error reporting: every rejected row is listed
- No HTTP knowledge: raises IngestionError

Usage:
    from fund_positions.services.ingestion import LedgerImportService

    service = LedgerImportService()
    with open("trade_history.csv", "rb") as f:
        result = service.import_trade_history(db, f, "trade_history.csv")
    print(f"Inserted {result.inserted_count} trades")
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Callable, Hashable

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fund_positions.models import Base, TradeHistory, ReferencePrice
from fund_positions.services.exceptions import IngestionError
from fund_positions.services.ingestion.parsers import (
    LedgerCsvParser,
    TradeHistoryCsvParser,
    ReferencePriceCsvParser,
    ParseError,
    TradeRow,
    PriceRow,
)

logger = logging.getLogger(__name__)

# Row errors quoted in the IngestionError message
MAX_ERRORS_IN_MESSAGE = 5


@dataclass(frozen=True)
class ImportResult:
    """
    Outcome of a committed import.

    Attributes:
        table: Table the rows were inserted into
        source: File name
        inserted_count: Rows inserted
    """

    table: str
    source: str
    inserted_count: int


class LedgerImportService:
    """
    Imports ledger CSV files, one transaction per file.
    """

    def __init__(
            self,
            trade_parser: LedgerCsvParser | None = None,
            price_parser: LedgerCsvParser | None = None,
    ) -> None:
        self._trade_parser = trade_parser or TradeHistoryCsvParser()
        self._price_parser = price_parser or ReferencePriceCsvParser()

    # =========================================================================
    # PUBLIC API
    # =========================================================================

    def import_trade_history(
            self,
            db: Session,
            file: BinaryIO,
            filename: str = "trade_history.csv",
    ) -> ImportResult:
        """
        Import trade records.

        Raises:
            IngestionError: On any parse error, duplicate
                (user_id, fund_id, trade_date), or database failure
        """
        return self._import(
            db=db,
            parser=self._trade_parser,
            file=file,
            filename=filename,
            table=TradeHistory.__tablename__,
            key=lambda row: (row.user_id, row.fund_id, row.trade_date),
            to_model=self._trade_model,
        )

    def import_reference_prices(
            self,
            db: Session,
            file: BinaryIO,
            filename: str = "reference_prices.csv",
    ) -> ImportResult:
        """
        Import reference prices.

        Raises:
            IngestionError: On any parse error, duplicate
                (fund_id, price_date), or database failure
        """
        return self._import(
            db=db,
            parser=self._price_parser,
            file=file,
            filename=filename,
            table=ReferencePrice.__tablename__,
            key=lambda row: (row.fund_id, row.price_date),
            to_model=self._price_model,
        )

    def import_paths(
            self,
            db: Session,
            trade_history_path: Path,
            reference_prices_path: Path,
    ) -> list[ImportResult]:
        """
        Import both ledgers from disk: trades first, then prices.

        Each file commits on its own. A failure in the price file leaves
        the already imported trades in place.

        Raises:
            IngestionError: If a file is missing or cannot be imported
        """
        results = []
        for path, import_file in (
                (trade_history_path, self.import_trade_history),
                (reference_prices_path, self.import_reference_prices),
        ):
            try:
                with open(path, "rb") as f:
                    results.append(import_file(db, f, path.name))
            except OSError as e:
                raise IngestionError(f"Could not open {path}: {e}", source=str(path)) from e
        return results

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    def _import(
            self,
            db: Session,
            parser: LedgerCsvParser,
            file: BinaryIO,
            filename: str,
            table: str,
            key: Callable[[TradeRow | PriceRow], Hashable],
            to_model: Callable[[TradeRow | PriceRow], Base],
    ) -> ImportResult:
        parsed = parser.parse(file, filename)
        errors = list(parsed.errors)
        errors.extend(self._find_duplicates(parsed.rows, key))

        if errors:
            self._reject(filename, errors)

        models = [to_model(row) for row in parsed.rows]

        try:
            db.add_all(models)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error(f"Import of {filename} failed, rolled back: {e}")
            raise IngestionError(
                f"Could not import {filename}: {str(e).splitlines()[0]}",
                source=filename,
            ) from e

        logger.info(f"Imported {len(models)} row(s) from {filename} into {table}")
        return ImportResult(table=table, source=filename, inserted_count=len(models))

    @staticmethod
    def _find_duplicates(
            rows: list[TradeRow | PriceRow],
            key: Callable[[TradeRow | PriceRow], Hashable],
    ) -> list[ParseError]:
        """Rows repeating the primary key of an earlier row in the same file."""
        first_seen: dict[Hashable, int] = {}
        errors = []
        for row in rows:
            row_key = key(row)
            if row_key in first_seen:
                errors.append(ParseError(
                    row_number=row.row_number,
                    error_type="duplicate_key",
                    message=f"Duplicate key ({', '.join(str(part) for part in row_key)}) (first seen on row {first_seen[row_key]})",
                ))
            else:
                first_seen[row_key] = row.row_number
        return errors

    @staticmethod
    def _reject(filename: str, errors: list[ParseError]) -> None:
        errors.sort(key=lambda e: e.row_number)
        for error in errors:
            logger.error(f"{filename} {error}")

        shown = "; ".join(str(e) for e in errors[:MAX_ERRORS_IN_MESSAGE])
        more = len(errors) - MAX_ERRORS_IN_MESSAGE
        if more > 0:
            shown += f"; and {more} more"

        raise IngestionError(
            f"{filename} rejected with {len(errors)} error(s): {shown}",
            source=filename,
            errors=errors,
        )

    @staticmethod
    def _trade_model(row: TradeRow) -> TradeHistory:
        return TradeHistory(
            user_id=row.user_id,
            fund_id=row.fund_id,
            quantity=row.quantity,
            trade_date=row.trade_date,
        )

    @staticmethod
    def _price_model(row: PriceRow) -> ReferencePrice:
        return ReferencePrice(
            fund_id=row.fund_id,
            price=row.price,
            price_date=row.price_date,
        )
