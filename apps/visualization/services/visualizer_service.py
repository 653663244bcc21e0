import logging
import time

from django.conf import settings

from apps.visualization.constants import MAX_UPLOAD_SIZE, PREVIEW_ROW_COUNT
from apps.visualization.exceptions import IngestError
from apps.visualization.schema import AnalysisResult
from apps.visualization.services.chart_recommender import ChartRecommender
from apps.visualization.services.loader import DatasetLoader
from apps.visualization.services.profiler import ColumnTypeProfiler

logger = logging.getLogger(__name__)


class VisualizationService:
    def __init__(self, delay_seconds: float = None):
        self.loader = DatasetLoader(
            max_upload_size=getattr(settings, "CSV_MAX_UPLOAD_SIZE", MAX_UPLOAD_SIZE),
            preview_size=getattr(settings, "CSV_PREVIEW_ROWS", PREVIEW_ROW_COUNT),
        )
        self.profiler = ColumnTypeProfiler()
        self.recommender = ChartRecommender()
        if delay_seconds is None:
            delay_seconds = getattr(settings, "ANALYSIS_DELAY_SECONDS", 0)
        self.delay_seconds = delay_seconds

    def analyze(self, file) -> AnalysisResult:
        """
        Ingest an uploaded CSV, classify its columns and suggest charts.

        :param file: uploaded file
        :return: AnalysisResult
        :raises IngestError: the file was rejected or could not be parsed
        """
        try:
            table = self.loader.ingest(file)
        except IngestError as exc:
            logger.warning("Rejected upload %r: %s", getattr(file, "name", None), exc)
            raise

        if self.delay_seconds > 0:
            time.sleep(self.delay_seconds)

        column_types = self.profiler.classify(table.headers, table.rows)
        suggestions = self.recommender.suggest(table.headers, column_types)

        logger.info(
            "Analyzed %r: %d rows, %d columns, %d suggestions",
            file.name,
            table.total_row_count,
            len(table.headers),
            len(suggestions),
        )

        return AnalysisResult(
            file_name=file.name,
            file_size=getattr(file, "size", None) or 0,
            table=table,
            column_types=column_types,
            suggestions=suggestions,
        )
