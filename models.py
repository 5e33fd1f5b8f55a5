from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

PLACEHOLDER = "#"

PreviewLink = Union[str, list]


class AppStatus(Enum):
    IN_PROGRESS = ("in_progress", "⏳ In Progress")
    SUCCESSFUL  = ("successful", "✅ Successful")
    FAILED      = ("failed", "❌ Failed")
    SKIPPED     = ("skipped", "🚫 Skipped")
    CANCELLED   = ("cancelled", "⛔ Cancelled")
    NEUTRAL     = ("neutral", "➖ Neutral")

    def __init__(self, code: str, label: str):
        self.code  = code
        self.label = label

    @classmethod
    def from_label(cls, label: str) -> Optional["AppStatus"]:
        """Inverse of ``label``, used when reading a rendered table back. None if unknown."""
        for status in cls:
            if status.label == label:
                return status
        return None

    @classmethod
    def from_conclusion(cls, conclusion: Optional[str]) -> "AppStatus":
        """Maps a workflow job conclusion to a status. Unset means still running."""
        return CONCLUSION_STATUS.get(conclusion, cls.IN_PROGRESS)


CONCLUSION_STATUS = {
    "success":         AppStatus.SUCCESSFUL,
    "failure":         AppStatus.FAILED,
    "action_required": AppStatus.FAILED,
    "timed_out":       AppStatus.FAILED,
    "skipped":         AppStatus.SKIPPED,
    "cancelled":       AppStatus.CANCELLED,
    "neutral":         AppStatus.NEUTRAL,
}


@dataclass
class AppStatusLine:
    name:         str
    status:       AppStatus
    job_url:      str = PLACEHOLDER
    updated_at:   str = ""
    preview_link: PreviewLink = field(default=PLACEHOLDER)  # "#", one URL or list of URLs

    @property
    def preview_links(self) -> list:
        if isinstance(self.preview_link, list):
            return list(self.preview_link)
        return [self.preview_link]

    def to_dict(self):
        return {
            "name": self.name,
            "status": self.status.code,
            "job_url": self.job_url,
            "updated_at": self.updated_at,
            "preview_link": self.preview_link,
        }
