"""
Tests for guest import validation and partial commit
"""

import io

import pandas as pd
import pytest

from app.core.errors import ErrorCode, TenantError
from app.services.guest_import_service import GuestImportService, ImportRow
from app.services.guest_repository import GuestFilters, SecureGuestRepository
from app.services.tenant_security import ANONYMOUS


def create_test_excel(data):
    """Helper function to create Excel bytes from data"""
    df = pd.DataFrame(data)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        df.to_excel(writer, index=False)
    return buffer.getvalue()


def create_test_csv(data):
    return pd.DataFrame(data).to_csv(index=False).encode("utf-8")


def seven_rows():
    """Five valid rows and two with a missing name (spreadsheet rows 4 and 7)"""
    return {
        'Name': ['Alice', 'Bob', '', 'Carol', 'Dave', '', 'Eve'],
        'Relationship': ['Friend', 'Family', 'Friend', 'Colleague', 'Friend', 'Family', 'Neighbor'],
        'Attendance': ['yes', 'No', 'maybe', 'YES', 'maybe', 'no', 'yes'],
        'Message': ['Congrats', '', '', 'See you', '', '', ''],
    }


def test_validate_file_structure_valid():
    df = pd.DataFrame({'Name': ['A'], 'RELATIONSHIP': ['B'], ' attendance ': ['yes']})

    valid, errors = GuestImportService.validate_file_structure(df)
    assert valid
    assert errors == []


def test_validate_file_structure_missing_attendance():
    df = pd.DataFrame({'name': ['A'], 'relationship': ['B']})

    valid, errors = GuestImportService.validate_file_structure(df)
    assert not valid
    assert errors == ["Missing required columns: attendance"]


def test_validate_file_rejects_extension_and_size():
    assert GuestImportService.validate_file("guests.csv", 100) == []
    assert "Invalid file format" in GuestImportService.validate_file("guests.pdf", 100)[0]
    assert "File size exceeds" in GuestImportService.validate_file("guests.xlsx", 6 * 1024 * 1024)[0]


def test_validate_guest_row_messages():
    row = ImportRow(row=2, name="x" * 101, relationship="", attendance="sometimes", message="m" * 1001)

    assert GuestImportService.validate_guest_row(row) == [
        "Name must not exceed 100 characters",
        "Relationship is required",
        "Attendance must be one of: yes, no, maybe",
        "Message must not exceed 1000 characters",
    ]


def test_parse_csv_numbers_rows_from_two():
    result = GuestImportService.parse_guest_file(create_test_csv(seven_rows()), "guests.csv")

    assert len(result.rows) == 5
    assert [e.row for e in result.errors] == [4, 7]
    assert result.errors[0].errors == ["Name is required"]
    assert result.rows[0].row == 2
    assert result.rows[1].attendance == "no"
    assert result.rows[1].message is None


def test_parse_excel_file():
    result = GuestImportService.parse_guest_file(create_test_excel(seven_rows()), "guests.xlsx")

    assert len(result.rows) == 5
    assert [e.row for e in result.errors] == [4, 7]


def test_parse_missing_column_is_file_level_error():
    data = {'Name': ['Alice'], 'Relationship': ['Friend']}
    result = GuestImportService.parse_guest_file(create_test_csv(data), "guests.csv")

    assert result.rows == []
    assert len(result.errors) == 1
    assert result.errors[0].row == 0
    assert result.errors[0].errors == ["Missing required columns: attendance"]


def test_parse_empty_file():
    result = GuestImportService.parse_guest_file(b"", "guests.csv")
    assert result.errors[0].row == 0
    assert result.errors[0].errors == ["File contains no data"]


def test_parse_corrupt_excel():
    result = GuestImportService.parse_guest_file(b"not a workbook", "guests.xlsx")
    assert result.errors[0].row == 0
    assert result.errors[0].errors[0].startswith("Failed to parse file")


def test_import_partial_success(guest_repo, sample_tenant, count_guests):
    content = create_test_excel(seven_rows())

    result = GuestImportService.import_guests(content, "guests.xlsx", sample_tenant.id, guest_repo)

    assert result.imported == 5
    assert result.failed == 2
    assert [e.row for e in result.errors] == [4, 7]
    assert result.commit_errors == []
    assert count_guests(sample_tenant.id) == 5


def test_import_aborts_on_missing_column(guest_repo, sample_tenant, count_guests):
    data = {'Name': ['Alice'], 'Relationship': ['Friend']}

    result = GuestImportService.import_guests(create_test_csv(data), "guests.csv", sample_tenant.id, guest_repo)

    assert result.aborted
    assert result.imported == 0
    assert result.to_dict()["errors"] == [{"row": 0, "errors": ["Missing required columns: attendance"]}]
    assert count_guests(sample_tenant.id) == 0


def test_import_commit_failure_does_not_stop_later_rows(guest_repo, sample_tenant, monkeypatch, count_guests):
    original_create = SecureGuestRepository.create

    def flaky_create(self, data):
        if data["name"] == "Bob":
            raise TenantError(ErrorCode.DATABASE_ERROR, "Failed to create guest")
        return original_create(self, data)

    monkeypatch.setattr(SecureGuestRepository, "create", flaky_create)

    result = GuestImportService.import_guests(create_test_csv(seven_rows()), "guests.csv", sample_tenant.id, guest_repo)

    assert result.imported == 4
    assert result.failed == 2
    assert [e.row for e in result.commit_errors] == [3]
    assert count_guests(sample_tenant.id) == 4


def test_import_requires_authentication(db_session, sample_tenant):
    repository = SecureGuestRepository(db_session, ANONYMOUS)

    with pytest.raises(TenantError) as exc_info:
        GuestImportService.import_guests(create_test_csv(seven_rows()), "guests.csv", sample_tenant.id, repository)
    assert exc_info.value.code == ErrorCode.UNAUTHORIZED


def test_result_workbook_sheets(guest_repo, sample_tenant):
    result = GuestImportService.import_guests(create_test_csv(seven_rows()), "guests.csv", sample_tenant.id, guest_repo)

    sheets = pd.read_excel(io.BytesIO(GuestImportService.build_result_workbook(result)), sheet_name=None)
    assert list(sheets) == ["Success", "Failed"]
    assert len(sheets["Success"]) == 5
    assert list(sheets["Failed"]["row"]) == [4, 7]


def test_create_template_is_importable():
    result = GuestImportService.parse_guest_file(GuestImportService.create_template(), "import-sample.csv")

    assert result.errors == []
    assert len(result.rows) == 3


def test_import_keeps_long_messages(guest_repo, sample_tenant):
    message = "m" * 800
    content = create_test_csv({
        'name': ['Alice'],
        'relationship': ['Friend'],
        'attendance': ['yes'],
        'message': [message],
    })

    result = GuestImportService.import_guests(content, "guests.csv", sample_tenant.id, guest_repo)

    assert result.imported == 1
    assert result.commit_errors == []
    assert result.imported_rows[0].message == message
    stored = guest_repo.find_many(GuestFilters(tenant_id=sample_tenant.id)).guests
    assert len(stored[0].message) == 800
