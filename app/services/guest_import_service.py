"""
Guest bulk import from CSV or Excel files.

A file moves through format validation, column validation and per-row
validation before valid rows are committed one at a time. Bad rows are
collected, never raised, so one bad row cannot block the good ones.
"""

import io
import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

import pandas as pd

from app.core.config import settings
from app.core.errors import TenantError
from app.models.guest import ATTENDANCE_VALUES
from app.services.guest_repository import (
    MAX_MESSAGE_LENGTH,
    MAX_NAME_LENGTH,
    MAX_RELATIONSHIP_LENGTH,
    SecureGuestRepository,
)

logger = logging.getLogger(__name__)

# Header is row 1, so the first data row is row 2
FIRST_DATA_ROW = 2
FILE_LEVEL_ROW = 0


@dataclass
class ImportRow:
    row: int
    name: str
    relationship: str
    attendance: str
    message: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "relationship": self.relationship,
            "attendance": self.attendance,
            "message": self.message or "",
        }


@dataclass
class RowError:
    row: int
    errors: List[str]
    values: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"row": self.row, "errors": self.errors}


@dataclass
class ParseResult:
    rows: List[ImportRow] = field(default_factory=list)
    errors: List[RowError] = field(default_factory=list)

    @property
    def file_errors(self) -> List[RowError]:
        return [e for e in self.errors if e.row == FILE_LEVEL_ROW]


@dataclass
class ImportResult:
    imported: int = 0
    # Validation rejections only; commit failures are listed in commit_errors
    failed: int = 0
    errors: List[RowError] = field(default_factory=list)
    commit_errors: List[RowError] = field(default_factory=list)
    imported_rows: List[ImportRow] = field(default_factory=list)

    @property
    def aborted(self) -> bool:
        return any(e.row == FILE_LEVEL_ROW for e in self.errors)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "imported": self.imported,
            "failed": self.failed,
            "errors": [e.to_dict() for e in self.errors],
            "commit_errors": [e.to_dict() for e in self.commit_errors],
        }


def _file_error(message: str) -> ParseResult:
    return ParseResult(errors=[RowError(row=FILE_LEVEL_ROW, errors=[message])])


class GuestImportService:
    """Service for importing guests from spreadsheets"""

    MAX_FILE_SIZE = settings.MAX_IMPORT_SIZE
    ALLOWED_EXTENSIONS = (".csv", ".xlsx", ".xls")
    REQUIRED_COLUMNS = ["name", "relationship", "attendance"]
    TEMPLATE_COLUMNS = ["name", "relationship", "attendance", "message"]

    @staticmethod
    def validate_file(filename: str, size: int) -> List[str]:
        """Check extension and size before anything is parsed"""
        errors = []

        if size > GuestImportService.MAX_FILE_SIZE:
            limit_mb = GuestImportService.MAX_FILE_SIZE // (1024 * 1024)
            errors.append(f"File size exceeds maximum limit of {limit_mb}MB")

        extension = os.path.splitext((filename or "").lower())[1]
        if extension not in GuestImportService.ALLOWED_EXTENSIONS:
            allowed = ", ".join(GuestImportService.ALLOWED_EXTENSIONS)
            errors.append(f"Invalid file format. Allowed formats: {allowed}")

        return errors

    @staticmethod
    def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
        """Lower-case and trim headers; the first of any duplicates wins"""
        df = df.copy()
        df.columns = [str(col).strip().lower() for col in df.columns]
        return df.loc[:, ~df.columns.duplicated()]

    @staticmethod
    def validate_file_structure(df: pd.DataFrame) -> Tuple[bool, List[str]]:
        """Validate that the required columns are present (case-insensitive)"""
        errors = []

        normalized_columns = [str(col).lower().strip() for col in df.columns]
        missing_columns = [
            col for col in GuestImportService.REQUIRED_COLUMNS
            if col not in normalized_columns
        ]

        if missing_columns:
            errors.append(f"Missing required columns: {', '.join(missing_columns)}")

        return len(errors) == 0, errors

    @staticmethod
    def read_dataframe(file_content: bytes, filename: str) -> pd.DataFrame:
        """Read a CSV, or the guest sheet of a workbook, as strings"""
        buffer = io.BytesIO(file_content)

        if filename.lower().endswith(".csv"):
            df = pd.read_csv(buffer, dtype=str, keep_default_na=False, skip_blank_lines=True)
        else:
            sheets = pd.read_excel(buffer, sheet_name=None, dtype=str)
            if not sheets:
                return pd.DataFrame()
            # Prefer the first sheet carrying the guest columns, e.g. the
            # "Guest List" sheet of an export
            df = next(
                (sheet for sheet in sheets.values()
                 if GuestImportService.validate_file_structure(sheet)[0]),
                next(iter(sheets.values())),
            )

        df = df.fillna("")
        # Blank rows are skipped and do not count towards row numbers
        blank = df.apply(lambda r: all(str(v).strip() == "" for v in r), axis=1) if len(df) else []
        if len(df):
            df = df[~blank]
        return df.reset_index(drop=True)

    @staticmethod
    def validate_guest_row(row: ImportRow) -> List[str]:
        """Validate a single guest row; returns every problem found"""
        errors = []

        if not row.name:
            errors.append("Name is required")
        elif len(row.name) > MAX_NAME_LENGTH:
            errors.append(f"Name must not exceed {MAX_NAME_LENGTH} characters")

        if not row.relationship:
            errors.append("Relationship is required")
        elif len(row.relationship) > MAX_RELATIONSHIP_LENGTH:
            errors.append(f"Relationship must not exceed {MAX_RELATIONSHIP_LENGTH} characters")

        if not row.attendance:
            errors.append("Attendance is required")
        elif row.attendance not in ATTENDANCE_VALUES:
            errors.append(f"Attendance must be one of: {', '.join(ATTENDANCE_VALUES)}")

        if row.message and len(row.message) > MAX_MESSAGE_LENGTH:
            errors.append(f"Message must not exceed {MAX_MESSAGE_LENGTH} characters")

        return errors

    @staticmethod
    def parse_guest_file(file_content: bytes, filename: str) -> ParseResult:
        """Parse and validate an uploaded file into valid rows and row errors"""
        file_errors = GuestImportService.validate_file(filename, len(file_content))
        if file_errors:
            return _file_error(file_errors[0])

        try:
            df = GuestImportService.read_dataframe(file_content, filename)
        except pd.errors.EmptyDataError:
            return _file_error("File contains no data")
        except Exception as e:
            logger.warning("Failed to parse import file %s: %s", filename, e)
            return _file_error(f"Failed to parse file: {e}")

        if df.empty:
            return _file_error("File contains no data")

        valid_structure, structure_errors = GuestImportService.validate_file_structure(df)
        if not valid_structure:
            return _file_error(structure_errors[0])

        df = GuestImportService.normalize_columns(df)
        has_message = "message" in df.columns

        result = ParseResult()
        for position, record in enumerate(df.to_dict(orient="records")):
            message = str(record["message"]).strip() if has_message else ""
            guest_row = ImportRow(
                row=position + FIRST_DATA_ROW,
                name=str(record["name"]).strip(),
                relationship=str(record["relationship"]).strip(),
                attendance=str(record["attendance"]).strip().lower(),
                message=message or None,
            )

            row_errors = GuestImportService.validate_guest_row(guest_row)
            if row_errors:
                result.errors.append(RowError(row=guest_row.row, errors=row_errors, values=guest_row.as_dict()))
            else:
                result.rows.append(guest_row)

        return result

    @staticmethod
    def import_guests(
        file_content: bytes,
        filename: str,
        tenant_id: int,
        repository: SecureGuestRepository,
    ) -> ImportResult:
        """Parse a file and commit each valid row independently.

        A failed insert is logged and skipped. Earlier rows stay committed
        and later rows are still attempted.
        """
        repository.authorize("write")

        parsed = GuestImportService.parse_guest_file(file_content, filename)
        if parsed.file_errors:
            return ImportResult(errors=parsed.file_errors)

        result = ImportResult(failed=len(parsed.errors), errors=parsed.errors)

        for guest_row in parsed.rows:
            try:
                repository.create({
                    "tenant_id": tenant_id,
                    "name": guest_row.name,
                    "relationship": guest_row.relationship,
                    "attendance": guest_row.attendance,
                    "message": guest_row.message,
                })
            except TenantError as e:
                logger.error("Error importing guest row %s: %s", guest_row.row, e)
                result.commit_errors.append(
                    RowError(row=guest_row.row, errors=[e.message], values=guest_row.as_dict())
                )
                continue

            result.imported += 1
            result.imported_rows.append(guest_row)

        logger.info(
            "Imported %s guests into tenant %s (%s rejected, %s failed to commit)",
            result.imported, tenant_id, result.failed, len(result.commit_errors),
        )
        return result

    @staticmethod
    def build_result_workbook(result: ImportResult) -> bytes:
        """Workbook with a Success sheet and a Failed sheet"""
        success = pd.DataFrame(
            [row.as_dict() for row in result.imported_rows],
            columns=GuestImportService.TEMPLATE_COLUMNS,
        )
        failed = pd.DataFrame(
            [
                {"row": error.row, **error.values, "error": ", ".join(error.errors)}
                for error in sorted(result.errors + result.commit_errors, key=lambda e: e.row)
            ],
            columns=["row", *GuestImportService.TEMPLATE_COLUMNS, "error"],
        )

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            success.to_excel(writer, index=False, sheet_name="Success")
            failed.to_excel(writer, index=False, sheet_name="Failed")

        return buffer.getvalue()

    @staticmethod
    def create_template() -> bytes:
        """Sample CSV with the expected columns"""
        df = pd.DataFrame(
            [
                ["Nguyen Van A", "Friend", "yes", "Congratulations!"],
                ["Tran Thi B", "Family", "maybe", ""],
                ["John Smith", "Colleague", "no", "Sorry, I can't make it"],
            ],
            columns=GuestImportService.TEMPLATE_COLUMNS,
        )
        return df.to_csv(index=False).encode("utf-8")
