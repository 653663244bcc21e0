from typing import Dict

from apps.visualization.schema import ChartKind


class ExplanationGenerator:
    def generate(self, chart_kind: str, fields: Dict[str, str]) -> str:
        """
        Describe what a suggested chart shows, in one sentence.

        :param chart_kind: one of ChartKind
        :param fields: chart role -> column name
        :return: description shown on the suggestion card
        """
        if chart_kind == ChartKind.BAR and fields.get("x"):
            return (
                f"Compare {fields['y']} values across different "
                f"{fields['x']} categories"
            )
        elif chart_kind == ChartKind.BAR:
            return f"Overview of {fields['y']} values across all rows"
        elif chart_kind == ChartKind.PIE:
            return (
                f"See how {fields['value']} is distributed among "
                f"{fields['category']} categories"
            )
        elif chart_kind == ChartKind.LINE:
            return f"Track changes in {fields['y']} over {fields['x']}"
        elif chart_kind == ChartKind.SCATTER:
            return f"Explore the relationship between {fields['x']} and {fields['y']}"

        return "View your data in a tabular format"
