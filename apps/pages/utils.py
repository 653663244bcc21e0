import html
from typing import Dict, List, Sequence

import pandas as pd
from bs4 import BeautifulSoup


def format_cell(value) -> str:
    if value is None:
        return ""
    return str(value)


def generate_styled_table(headers: Sequence[str], rows: List[Dict], limit=20):
    def truncate_with_tooltip(value):
        if len(value) > limit:
            short = value[:limit] + "..."
            # Escape quotes so HTML stays valid
            safe_full = html.escape(value, quote=True)
            return f'<span title="{safe_full}">{html.escape(short)}</span>'
        return html.escape(value)

    df = pd.DataFrame(
        [[format_cell(row.get(name)) for name in headers] for row in rows],
        columns=[html.escape(name) for name in headers],
        dtype=object,
    )

    for col in df.columns:
        df[col] = df[col].apply(truncate_with_tooltip)

    html_table = df.to_html(
        index=False,
        classes="min-w-full text-xs md:text-sm border-collapse",
        border=0,
        escape=False,
    )

    soup = BeautifulSoup(html_table, "html.parser")

    for tag in soup.find_all(["th", "td"]):
        tag.attrs.pop("style", None)
        tag["class"] = "px-4 py-2 text-left text-gray-700 dark:text-gray-300"

    thead = soup.find("thead")
    if thead:
        thead["class"] = (
            "bg-gray-100 dark:bg-gray-800 text-gray-500 dark:text-gray-400 "
            "uppercase tracking-wider text-xs font-medium"
        )

    tbody = soup.find("tbody")
    if tbody:
        tbody["class"] = "divide-y divide-gray-200 dark:divide-gray-700"

    table = soup.find("table")
    if table:
        table["class"] = "w-full min-w-full divide-y divide-gray-200 text-sm"

    return str(soup)


def column_type_rows(upload: Dict) -> List[Dict[str, str]]:
    column_types = upload.get("column_types", {})
    return [
        {"name": name, "type": column_types.get(name, "unknown")}
        for name in upload.get("headers", [])
    ]
