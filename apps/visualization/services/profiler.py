import logging
import math
import numbers
import warnings
from typing import Dict, List, Sequence

import pandas as pd

from apps.visualization.constants import TYPE_SAMPLE_SIZE
from apps.visualization.schema import CellValue, ColumnType, Record
from apps.visualization.services.loader import parse_number

logger = logging.getLogger(__name__)


class ColumnTypeProfiler:
    def __init__(self, sample_size: int = TYPE_SAMPLE_SIZE):
        self.sample_size = sample_size

    @staticmethod
    def _is_missing(value: CellValue) -> bool:
        if value is None or value == "":
            return True
        return isinstance(value, float) and math.isnan(value)

    @staticmethod
    def _is_number(value: CellValue) -> bool:
        if isinstance(value, bool):
            return False
        if isinstance(value, numbers.Number):
            return True
        return isinstance(value, str) and parse_number(value) is not None

    @staticmethod
    def _is_date(value: CellValue) -> bool:
        with warnings.catch_warnings():
            # pandas warns when it has to guess a format for a single value.
            warnings.simplefilter("ignore", UserWarning)
            try:
                parsed = pd.to_datetime(value, errors="coerce")
            except (TypeError, ValueError, OverflowError):
                return False
        return not pd.isna(parsed)

    def _sample(self, column: str, rows: Sequence[Record]) -> List[CellValue]:
        """
        Collect the first ``sample_size`` non-missing values of a column.

        Parameters
        ----------
        column : str
            Header name
        rows : Sequence[Record]
            Parsed rows, in source order

        Returns
        -------
        List[CellValue]
            Up to ``sample_size`` values, in row order
        """
        sample = []
        for row in rows:
            value = row.get(column)
            if self._is_missing(value):
                continue
            sample.append(value)
            if len(sample) >= self.sample_size:
                break
        return sample

    def classify_column(self, column: str, rows: Sequence[Record]) -> ColumnType:
        sample = self._sample(column, rows)

        if not sample:
            return ColumnType.UNKNOWN
        if all(self._is_number(v) for v in sample):
            return ColumnType.NUMERIC
        if all(self._is_date(v) for v in sample):
            return ColumnType.DATE
        return ColumnType.CATEGORICAL

    def classify(
        self, headers: Sequence[str], rows: Sequence[Record]
    ) -> Dict[str, ColumnType]:
        """
        Infer a column type for every header.

        Parameters
        ----------
        headers : Sequence[str]
            Column names in source order
        rows : Sequence[Record]
            Parsed rows

        Returns
        -------
        Dict[str, ColumnType]
            One type per header, in header order
        """
        column_types = {name: self.classify_column(name, rows) for name in headers}
        logger.debug("Classified columns: %s", column_types)
        return column_types

    @staticmethod
    def group_by_type(column_types: Dict[str, str]) -> Dict[str, List[str]]:
        """
        Extract columns grouped by type, keeping header order inside each group.
        """
        groups = {choice.value: [] for choice in ColumnType}
        for name, column_type in column_types.items():
            groups[getattr(column_type, "value", column_type)].append(name)
        return groups
