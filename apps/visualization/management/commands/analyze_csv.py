import json
import os
from pathlib import Path

from django.core.files import File
from django.core.management.base import BaseCommand, CommandError

from apps.visualization.exceptions import IngestError
from apps.visualization.services.visualizer_service import VisualizationService


class Command(BaseCommand):
    help = "Infer column types of a CSV file and print the suggested charts."

    def add_arguments(self, parser):
        parser.add_argument("path", type=str, help="Path to the CSV file")
        parser.add_argument(
            "--json",
            action="store_true",
            help="Print the analysis as JSON instead of text",
        )

    def handle(self, *args, **options):
        path = Path(options["path"])

        if not os.path.exists(path):
            raise CommandError(f"File not found: {path}")

        service = VisualizationService(delay_seconds=0)

        try:
            with path.open("rb") as handle:
                result = service.analyze(File(handle, name=path.name))
        except IngestError as exc:
            raise CommandError(exc.message) from exc

        if options["json"]:
            self.stdout.write(json.dumps(result.to_dict(), indent=2, default=str))
            return

        self.stdout.write(
            f"{result.file_name}: {result.table.total_row_count} rows, "
            f"{len(result.table.headers)} columns"
        )
        for name in result.table.headers:
            self.stdout.write(f"  {name}: {result.column_types[name]!s}")

        self.stdout.write(self.style.SUCCESS("Suggested visualizations:"))
        for suggestion in result.suggestions:
            self.stdout.write(f"  [{suggestion.kind}] {suggestion.title}")
            self.stdout.write(f"      {suggestion.description}")
