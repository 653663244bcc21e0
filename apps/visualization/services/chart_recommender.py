import logging
from typing import Dict, List, Sequence

from apps.visualization.constants import TABLE_TITLE
from apps.visualization.schema import ChartKind, ColumnType, VisualizationSuggestion
from apps.visualization.services.explanation_generator import ExplanationGenerator
from apps.visualization.services.profiler import ColumnTypeProfiler

logger = logging.getLogger(__name__)


class ChartRecommender:
    def __init__(self, explainer: ExplanationGenerator = None):
        self.explainer = explainer or ExplanationGenerator()

    def _suggestion(self, kind: ChartKind, title: str, fields: Dict[str, str]):
        return VisualizationSuggestion(
            kind=kind.value,
            title=title,
            description=self.explainer.generate(kind, fields),
            fields=fields,
        )

    def suggest(
        self, headers: Sequence[str], column_types: Dict[str, str]
    ) -> List[VisualizationSuggestion]:
        """
        Map the mix of column types to an ordered list of chart suggestions.

        :param headers: column names in source order
        :param column_types: header -> ColumnType
        :return: A list of suggestions, in the order they should be shown
        """
        ordered = {name: column_types[name] for name in headers if name in column_types}
        groups = ColumnTypeProfiler.group_by_type(ordered)

        num_cols = groups[ColumnType.NUMERIC.value]
        cat_cols = groups[ColumnType.CATEGORICAL.value]
        dt_cols = groups[ColumnType.DATE.value]

        suggestions = []

        if cat_cols and num_cols:
            suggestions.append(
                self._suggestion(
                    ChartKind.BAR,
                    f"{num_cols[0]} by {cat_cols[0]}",
                    {"x": cat_cols[0], "y": num_cols[0]},
                )
            )
            suggestions.append(
                self._suggestion(
                    ChartKind.PIE,
                    f"Distribution of {num_cols[0]} across {cat_cols[0]}",
                    {"category": cat_cols[0], "value": num_cols[0]},
                )
            )

        if dt_cols and num_cols:
            suggestions.append(
                self._suggestion(
                    ChartKind.LINE,
                    f"{num_cols[0]} over time",
                    {"x": dt_cols[0], "y": num_cols[0]},
                )
            )

        if not suggestions:
            suggestions.append(self._fallback(num_cols))

        logger.debug("Suggested %s", [s.kind for s in suggestions])
        return suggestions

    def _fallback(self, num_cols: List[str]) -> VisualizationSuggestion:
        if len(num_cols) >= 2:
            return self._suggestion(
                ChartKind.SCATTER,
                f"{num_cols[0]} vs {num_cols[1]}",
                {"x": num_cols[0], "y": num_cols[1]},
            )
        if num_cols:
            return self._suggestion(
                ChartKind.BAR, f"{num_cols[0]} Summary", {"y": num_cols[0]}
            )
        return self._suggestion(ChartKind.TABLE, TABLE_TITLE, {})
