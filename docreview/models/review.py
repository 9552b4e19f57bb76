from typing import Literal, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

ChangeType = Literal["replace", "insert", "delete"]
Severity = Literal["error", "warning", "suggestion"]

CHANGE_TYPES = ("replace", "insert", "delete")
SEVERITIES = ("error", "warning", "suggestion")


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TotalIssues(_Frozen):
    errors: int = 0
    warnings: int = 0
    suggestions: int = 0


class DocumentInfo(_Frozen):
    title: str
    overview: str
    total_issues: TotalIssues = Field(alias="totalIssues")


class Position(_Frozen):
    start: int
    end: int


class EditOperation(_Frozen):
    type: ChangeType
    position: Position
    original_text: Optional[str] = Field(None, alias="originalText")
    new_text: Optional[str] = Field(None, alias="newText")
    explanation: str
    severity: Severity
    category: Optional[str] = None


class ParagraphReview(_Frozen):
    id: str
    original_text: str = Field(alias="originalText")
    changes: Tuple[EditOperation, ...] = ()


class DocumentEditResult(_Frozen):
    document_info: DocumentInfo = Field(alias="documentInfo")
    review_content: Tuple[ParagraphReview, ...] = Field((), alias="reviewContent")

    def to_dict(self) -> dict:
        """JSON-shaped dict with wire names. Fields absent from the input stay absent, explicit nulls stay null."""
        return self.model_dump(by_alias=True, mode="json", exclude_unset=True)
