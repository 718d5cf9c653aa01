"""
Tests for the guest list export
"""

import io
from datetime import date, datetime

import pandas as pd
from openpyxl import load_workbook

from app.services.guest_export_service import GuestExportService, TenantInfo, format_datetime
from app.services.guest_import_service import GuestImportService
from app.services.guest_repository import GuestFilters


def test_export_filename():
    info = TenantInfo(bride_name="Mary Anne", groom_name="John", wedding_date=date(2030, 6, 15))

    assert GuestExportService.export_filename(info, today=date(2030, 1, 2)) == "Mary-Anne-John-Guests-2030-01-02.xlsx"


def test_format_datetime():
    assert format_datetime(datetime(2030, 6, 15, 14, 5)) == "06/15/2030, 02:05 PM"
    assert format_datetime(None) == ""


def test_export_workbook_layout(guest_repo, sample_guests, sample_tenant):
    guests = guest_repo.find_many(GuestFilters(tenant_id=sample_tenant.id), limit=None).guests
    content = GuestExportService.export_guests(
        guests,
        TenantInfo.from_tenant(sample_tenant),
        exported_at=datetime(2030, 1, 1, 9, 30),
    )

    sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None)
    assert list(sheets) == ["Wedding Info", "Guest List"]

    info = sheets["Wedding Info"]
    assert info.iloc[0, 0] == "Wedding Information"
    details = {row[0]: row[1] for row in info.itertuples(index=False) if isinstance(row[0], str) and len(row) > 1}
    assert details["Bride"] == "Anna"
    assert details["Groom"] == "Minh"
    assert details["Wedding Date"] == "2030-06-15"
    assert details["Export Date"] == "01/01/2030, 09:30 AM"
    assert details["Total Guests"] == 3

    guest_sheet = pd.read_excel(io.BytesIO(content), sheet_name="Guest List")
    assert list(guest_sheet.columns) == GuestExportService.COLUMNS
    assert set(guest_sheet["Attendance"]) == {"Yes", "No", "Maybe"}

    worksheet = load_workbook(io.BytesIO(content))["Guest List"]
    assert worksheet.column_dimensions["A"].width == 25
    assert worksheet.column_dimensions["D"].width == 40


def test_export_then_import_round_trip(guest_repo, sample_guests, sample_tenant, other_tenant):
    guest_repo.update(sample_guests[0].id, sample_tenant.id, {"message": "Can't wait!"})
    guests = guest_repo.find_many(GuestFilters(tenant_id=sample_tenant.id), limit=None).guests
    content = GuestExportService.export_guests(guests, TenantInfo.from_tenant(sample_tenant))

    result = GuestImportService.import_guests(content, "export.xlsx", other_tenant.id, guest_repo)
    assert result.imported == 3
    assert result.failed == 0

    def snapshot(tenant_id):
        rows = guest_repo.find_many(GuestFilters(tenant_id=tenant_id), limit=None).guests
        return sorted((g.name, g.relationship, g.attendance, g.message) for g in rows)

    assert snapshot(other_tenant.id) == snapshot(sample_tenant.id)
