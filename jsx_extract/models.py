from pydantic import BaseModel, Field
from typing import Literal, Optional, List, Dict, Any

AnalysisKind = Literal["strict", "heuristic", "unavailable"]
StyleSource = Literal["parsed", "regex", "default"]

# ---- Identifier analysis ----
class AnalysisResult(BaseModel):
    kind: AnalysisKind = Field(..., description="Which path produced the entities")
    entities: List[str] = Field(default_factory=list, description="Extracted identifier names")
    error: Optional[str] = Field(None, description="Why the strict path was not used")

    @property
    def ok(self) -> bool:
        return self.kind != "unavailable"

    @classmethod
    def strict(cls, entities: List[str]) -> "AnalysisResult":
        return cls(kind="strict", entities=list(entities))

    @classmethod
    def heuristic(cls, entities: List[str], error: Optional[str] = None) -> "AnalysisResult":
        return cls(kind="heuristic", entities=list(entities), error=error)

    @classmethod
    def unavailable(cls, error: str) -> "AnalysisResult":
        return cls(kind="unavailable", entities=[], error=error)

# ---- Style extraction ----
class StylesheetResult(BaseModel):
    stylesheetName: str = Field(..., description="Identifier the fragment uses for styles")
    stylesheetSnippet: str = Field(..., description="Synthetic StyleSheet.create declaration")
    styles: Dict[str, Any] = Field(default_factory=dict, description="Style entries referenced by the fragment")
    source: StyleSource = Field("default", description="How the style values were resolved")

# ---- Autofix ----
class LintMessageModel(BaseModel):
    ruleId: Optional[str] = Field(None, description="Rule that produced the message, None for parse errors")
    message: str = Field(..., description="Human readable message")
    line: int = Field(..., description="1-based line")
    column: int = Field(..., description="1-based column")
    severity: int = Field(2, description="1 = warning, 2 = error")
    fatal: bool = Field(False, description="True for parse errors")

class FixReport(BaseModel):
    output: str = Field(..., description="Source after fixes were applied")
    fixed: bool = Field(False, description="Whether any fix was applied")
    messages: List[LintMessageModel] = Field(default_factory=list, description="Remaining messages")
