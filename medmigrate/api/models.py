"""Pydantic models for API requests and responses."""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from enum import Enum


class MigrationSourceEnum(str, Enum):
    PATIENT = "patient_tbl"
    MEDICAL_TEST = "medical_test_tbl"
    HISTORY = "history_tbl"
    RECORD_LOG = "record_log_tbl"


class MigrationTargetEnum(str, Enum):
    PATIENTS = "patients"
    LAB_RESULTS = "lab_results"
    ACTIVITY_LOGS = "activity_logs"


class MigrationOutcomeEnum(str, Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILURE = "failure"


# Request Models
class PreviewRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Raw SQL dump text")
    source: MigrationSourceEnum
    target: MigrationTargetEnum


class ExecuteRequest(BaseModel):
    content: str = Field(..., min_length=1, description="Raw SQL dump text")
    source: MigrationSourceEnum
    target: MigrationTargetEnum
    mappings: Dict[str, str] = Field(default_factory=dict)
    user_id: Optional[str] = None


# Response Models
class PreviewResponse(BaseModel):
    source: MigrationSourceEnum
    target: MigrationTargetEnum
    fields: List[str]
    data: List[Dict[str, Any]]
    mappings: Dict[str, str]
    unmapped_fields: List[str]
    suggestions: Dict[str, List[str]] = Field(default_factory=dict)
    total_records: int = 0


class MigrationResultResponse(BaseModel):
    success: bool
    outcome: MigrationOutcomeEnum
    records_processed: int = 0
    records_inserted: int = 0
    records_updated: int = 0
    records_skipped: int = 0
    errors: List[str] = Field(default_factory=list)
