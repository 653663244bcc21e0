from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional, Union

from django.db import models

from apps.visualization.constants import PREVIEW_ROW_COUNT

# A parsed cell: None for an empty cell, a number, or the raw text.
CellValue = Optional[Union[int, float, str]]

Record = Dict[str, CellValue]


class ColumnType(models.TextChoices):
    NUMERIC = "numeric", "Numeric"
    DATE = "date", "Date"
    CATEGORICAL = "categorical", "Categorical"
    UNKNOWN = "unknown", "Unknown"


class ChartKind(models.TextChoices):
    BAR = "bar", "Bar Chart"
    PIE = "pie", "Pie Chart"
    LINE = "line", "Line Chart"
    SCATTER = "scatter", "Scatter Plot"
    TABLE = "table", "Table"


@dataclass
class ParsedTable:
    headers: List[str]
    rows: List[Record]
    preview_size: int = PREVIEW_ROW_COUNT

    @property
    def total_row_count(self) -> int:
        return len(self.rows)

    @property
    def preview(self) -> List[Record]:
        return self.rows[: self.preview_size]


@dataclass
class VisualizationSuggestion:
    kind: str
    title: str
    description: str
    fields: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> Dict:
        return asdict(self)


@dataclass
class AnalysisResult:
    file_name: str
    file_size: int
    table: ParsedTable
    column_types: Dict[str, str]
    suggestions: List[VisualizationSuggestion]

    def to_dict(self) -> Dict:
        """
        JSON-safe summary of the analysis; rows beyond the preview are left out.
        """
        return {
            "file_name": self.file_name,
            "file_size": self.file_size,
            "headers": list(self.table.headers),
            "preview": [dict(row) for row in self.table.preview],
            "total_row_count": self.table.total_row_count,
            "column_types": {k: str(v) for k, v in self.column_types.items()},
            "suggestions": [s.to_dict() for s in self.suggestions],
        }
