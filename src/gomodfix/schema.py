from __future__ import annotations

from typing import Dict, List, Optional

from lsprotocol.types import Diagnostic, DiagnosticSeverity, Position, Range, TextEdit
from pydantic import BaseModel, Field

from gomodfix.source import AnalysisError, SuggestedFix


class PositionDTO(BaseModel):
    line: int = Field(ge=0)
    character: int = Field(ge=0)


class RangeDTO(BaseModel):
    start: PositionDTO
    end: PositionDTO

    def to_range(self) -> Range:
        return Range(
            start=Position(line=self.start.line, character=self.start.character),
            end=Position(line=self.end.line, character=self.end.character),
        )

    @classmethod
    def from_range(cls, rng: Range) -> RangeDTO:
        return cls(
            start=PositionDTO(line=rng.start.line, character=rng.start.character),
            end=PositionDTO(line=rng.end.line, character=rng.end.character),
        )


class TextEditDTO(BaseModel):
    range: RangeDTO
    new_text: str

    def to_edit(self) -> TextEdit:
        return TextEdit(range=self.range.to_range(), new_text=self.new_text)


class SuggestedFixDTO(BaseModel):
    title: str
    edits: Dict[str, List[TextEditDTO]] = {}

    def to_fix(self) -> SuggestedFix:
        return SuggestedFix(
            title=self.title,
            edits={uri: tuple(edit.to_edit() for edit in edits) for uri, edits in self.edits.items()},
        )


class AnalysisErrorDTO(BaseModel):
    message: str
    range: RangeDTO
    category: str
    uri: str
    suggested_fixes: List[SuggestedFixDTO] = []

    def to_error(self) -> AnalysisError:
        return AnalysisError(
            message=self.message,
            range=self.range.to_range(),
            category=self.category,
            uri=self.uri,
            suggested_fixes=tuple(fix.to_fix() for fix in self.suggested_fixes),
        )


class TidyReportDTO(BaseModel):
    errors: List[AnalysisErrorDTO] = []

    def to_errors(self) -> list[AnalysisError]:
        return [error.to_error() for error in self.errors]


class DiagnosticDTO(BaseModel):
    range: RangeDTO
    message: str
    severity: Optional[DiagnosticSeverity] = None
    source: Optional[str] = None

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic(
            range=self.range.to_range(),
            message=self.message,
            severity=self.severity,
            source=self.source,
        )

    @classmethod
    def from_diagnostic(cls, diagnostic: Diagnostic) -> DiagnosticDTO:
        return cls(
            range=RangeDTO.from_range(diagnostic.range),
            message=diagnostic.message,
            severity=diagnostic.severity,
            source=diagnostic.source,
        )
