from pydantic import BaseModel
from typing import Optional, List, Literal
from datetime import datetime
from campus_events.schemas.registration import ScanHistoryEntry, ManualOverride


class ScanRequest(BaseModel):
    ticket_id: Optional[str] = None
    payload: Optional[str] = None  # raw QR text, used when ticket_id is absent
    method: str = "camera"


class ScanResult(BaseModel):
    result: Literal["scanned", "duplicate"]
    message: str
    registration_id: int
    ticket_id: str
    participant_name: str
    participant_email: str
    first_scan_at: Optional[datetime] = None
    scanned_by: Optional[int] = None


class ManualAttendanceRequest(BaseModel):
    action: str
    reason: Optional[str] = None


class ManualAttendanceResult(BaseModel):
    registration_id: int
    attended: bool
    manual_overrides: List[ManualOverride] = []


class AttendanceCounts(BaseModel):
    total: int
    scanned: int
    remaining: int


class AttendanceRow(BaseModel):
    registration_id: int
    ticket_id: Optional[str] = None
    participant_name: str
    participant_email: str
    attended: bool
    first_scan_at: Optional[datetime] = None
    scanned_by: Optional[int] = None
    scan_method: Optional[str] = None
    scan_history: List[ScanHistoryEntry] = []
    manual_overrides: List[ManualOverride] = []
    created_at: datetime


class AttendanceSummary(BaseModel):
    event_id: int
    event_name: str
    event_type: str
    event_status: str
    counts: AttendanceCounts
    registrations: List[AttendanceRow]
