"""
Guest list export to Excel
"""

import io
import re
from dataclasses import dataclass
from datetime import date, datetime
from typing import List, Optional, Sequence

import pandas as pd
from openpyxl.utils import get_column_letter

from app.models import Guest, Tenant


@dataclass
class TenantInfo:
    bride_name: str
    groom_name: str
    wedding_date: date

    @classmethod
    def from_tenant(cls, tenant: Tenant) -> "TenantInfo":
        return cls(
            bride_name=tenant.bride_name,
            groom_name=tenant.groom_name,
            wedding_date=tenant.wedding_date,
        )


def format_datetime(value: Optional[datetime]) -> str:
    """``MM/DD/YYYY, hh:mm AM/PM``"""
    if value is None:
        return ""
    return value.strftime("%m/%d/%Y, %I:%M %p")


class GuestExportService:
    """Service for building the guest list workbook"""

    INFO_SHEET = "Wedding Info"
    GUEST_SHEET = "Guest List"
    COLUMNS = ["Name", "Relationship", "Attendance", "Message", "Created At", "Updated At"]
    COLUMN_WIDTHS = [25, 20, 12, 40, 20, 20]

    @staticmethod
    def export_guests(
        guests: Sequence[Guest],
        tenant_info: TenantInfo,
        exported_at: datetime = None,
    ) -> bytes:
        """Export guests and wedding details to an xlsx workbook"""
        exported_at = exported_at or datetime.now()

        info_rows: List[list] = [
            ["Wedding Information"],
            ["Bride", tenant_info.bride_name],
            ["Groom", tenant_info.groom_name],
            ["Wedding Date", tenant_info.wedding_date.isoformat()],
            [""],
            ["Export Date", format_datetime(exported_at)],
            ["Total Guests", len(guests)],
        ]
        info_df = pd.DataFrame(info_rows)

        guest_data = []
        for guest in guests:
            guest_data.append([
                guest.name,
                guest.relationship,
                guest.attendance.capitalize(),
                guest.message or "",
                format_datetime(guest.created_at),
                format_datetime(guest.updated_at),
            ])
        guests_df = pd.DataFrame(guest_data, columns=GuestExportService.COLUMNS)

        buffer = io.BytesIO()
        with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
            info_df.to_excel(writer, index=False, header=False, sheet_name=GuestExportService.INFO_SHEET)
            guests_df.to_excel(writer, index=False, sheet_name=GuestExportService.GUEST_SHEET)

            worksheet = writer.sheets[GuestExportService.GUEST_SHEET]
            for index, width in enumerate(GuestExportService.COLUMN_WIDTHS, start=1):
                worksheet.column_dimensions[get_column_letter(index)].width = width

        return buffer.getvalue()

    @staticmethod
    def export_filename(tenant_info: TenantInfo, today: date = None) -> str:
        today = today or date.today()
        bride = re.sub(r"\s+", "-", tenant_info.bride_name.strip())
        groom = re.sub(r"\s+", "-", tenant_info.groom_name.strip())
        return f"{bride}-{groom}-Guests-{today.isoformat()}.xlsx"
