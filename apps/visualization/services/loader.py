import csv
import io
import logging
from typing import List, Optional, Union

import pandas as pd
from pandas.errors import EmptyDataError, ParserError

from apps.visualization.constants import (
    CSV_CONTENT_TYPES,
    CSV_ENCODING,
    CSV_EXTENSION,
    CSV_FALLBACK_ENCODING,
    MAX_SAFE_INTEGER,
    MAX_UPLOAD_SIZE,
    PREVIEW_ROW_COUNT,
)
from apps.visualization.exceptions import FileTooLarge, InvalidFileType, ParseError
from apps.visualization.schema import CellValue, ParsedTable, Record

logger = logging.getLogger(__name__)


def parse_number(text: str) -> Optional[Union[int, float]]:
    """
    Read a cell as a number, or return None when it is not one.

    Values outside +/- 2^53 are not treated as numbers.
    """
    text = text.strip()
    if not text:
        return None
    try:
        number = pd.to_numeric(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if pd.isna(number) or abs(number) > MAX_SAFE_INTEGER:
        return None
    if pd.api.types.is_integer(number):
        return int(number)
    return float(number)


def coerce_value(raw: str) -> CellValue:
    """
    Turn one CSV cell into a typed value.

    :param raw: cell text exactly as tokenized
    :return: None for an empty cell, int/float when the text is a number,
        otherwise the text unchanged
    """
    if raw == "":
        return None
    number = parse_number(raw)
    return raw if number is None else number


class DatasetLoader:
    def __init__(
        self,
        max_upload_size: int = MAX_UPLOAD_SIZE,
        preview_size: int = PREVIEW_ROW_COUNT,
    ):
        self.max_upload_size = max_upload_size
        self.preview_size = preview_size

    def validate(self, file) -> None:
        """
        Check that the file looks like a CSV and fits the size limit.

        :param file: uploaded file (name, size, optional content_type)
        :raises InvalidFileType: neither the name nor the content type is CSV
        :raises FileTooLarge: the file is bigger than ``max_upload_size``
        """
        name = (getattr(file, "name", None) or "").lower()
        content_type = (getattr(file, "content_type", None) or "").lower()

        if not name.endswith(CSV_EXTENSION) and content_type not in CSV_CONTENT_TYPES:
            raise InvalidFileType()

        size = getattr(file, "size", None)
        if size is not None and size > self.max_upload_size:
            raise FileTooLarge(size, self.max_upload_size)

    def ingest(self, file) -> ParsedTable:
        """
        Validate and parse an uploaded CSV file.

        :param file: uploaded file
        :return: ParsedTable holding every data row
        """
        self.validate(file)

        if hasattr(file, "seek"):
            file.seek(0)
        raw = file.read()

        if len(raw) > self.max_upload_size:
            raise FileTooLarge(len(raw), self.max_upload_size)

        text = raw if isinstance(raw, str) else self._decode(raw)
        return self.parse_text(text)

    def parse_text(self, text: str) -> ParsedTable:
        # The python engine tokenizes with the csv module, which caps field length.
        if csv.field_size_limit() < len(text):
            csv.field_size_limit(len(text))

        try:
            frame = pd.read_csv(
                io.StringIO(text),
                header=None,
                dtype=str,
                engine="python",
                keep_default_na=False,
                skip_blank_lines=True,
            )
        except (EmptyDataError, ParserError) as exc:
            raise ParseError(str(exc)) from exc

        return self._build_table(frame)

    def _build_table(self, frame: pd.DataFrame) -> ParsedTable:
        cells = frame.to_numpy(dtype=object)
        padded = frame.isna().to_numpy()

        raw_headers = [str(name).strip() for name in cells[0]]
        expected = len(raw_headers)
        rows: List[Record] = []

        for number, (row, gaps) in enumerate(zip(cells[1:], padded[1:]), start=1):
            # Short rows come back padded with NaN; real empty cells are "".
            if gaps.any():
                raise ParseError(
                    f"Too few fields: expected {expected} fields but parsed "
                    f"{expected - int(gaps.sum())} (row {number})"
                )

            # Duplicate header names keep their first position; the last value wins.
            record: Record = {}
            for name, cell in zip(raw_headers, row):
                record[name] = coerce_value(cell)
            rows.append(record)

        headers = list(dict.fromkeys(raw_headers))
        logger.debug("Parsed %d rows across %d columns", len(rows), len(headers))
        return ParsedTable(headers=headers, rows=rows, preview_size=self.preview_size)

    @staticmethod
    def _decode(raw: bytes) -> str:
        try:
            return raw.decode(CSV_ENCODING)
        except UnicodeDecodeError:
            return raw.decode(CSV_FALLBACK_ENCODING)
