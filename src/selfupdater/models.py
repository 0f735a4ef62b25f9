"""Data models for the self-update flow."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from selfupdater.constants import PARTITION_MAX, PARTITION_MIN


class UpdateState(StrEnum):
    """Where a single run of the updater currently stands."""

    IDLE = "idle"
    CHECKING = "checking"
    ELIGIBLE = "eligible"
    NOT_ELIGIBLE = "not_eligible"
    TIMED_OUT = "timed_out"
    AWAITING_CONSENT = "awaiting_consent"
    DECLINED = "declined"
    DOWNLOADING = "downloading"
    APPLIED = "applied"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"  # download failed, nothing replaced
    FATAL = "fatal"  # replace and rollback both failed


TERMINAL_STATES = frozenset(
    {
        UpdateState.NOT_ELIGIBLE,
        UpdateState.TIMED_OUT,
        UpdateState.DECLINED,
        UpdateState.APPLIED,
        UpdateState.ROLLED_BACK,
        UpdateState.FAILED,
        UpdateState.FATAL,
    }
)


class LatestVersionInfo(BaseModel):
    """The newest published build, as served by the metadata endpoint."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    version: str = Field(min_length=1, description="Opaque version identifier")
    release_notes: str = Field(default="", alias="releaseNotes")
    start_partition: int = Field(
        default=PARTITION_MIN, ge=PARTITION_MIN, le=PARTITION_MAX, alias="startPartition"
    )
    end_partition: int = Field(
        default=PARTITION_MIN, ge=PARTITION_MIN, le=PARTITION_MAX, alias="endPartition"
    )

    @field_validator("release_notes", mode="before")
    @classmethod
    def validate_release_notes(cls, v: str | None) -> str:
        """Treat null release notes as empty."""
        return "" if v is None else v

    @classmethod
    def from_bytes(cls, data: bytes) -> LatestVersionInfo:
        """Parse the raw metadata document.

        Raises ``pydantic.ValidationError`` on malformed JSON or bad fields.
        """
        return cls.model_validate_json(data)
