import json
import os
import tempfile
from io import StringIO
from unittest import mock

from django.core.files.uploadedfile import SimpleUploadedFile
from django.core.management import CommandError, call_command
from django.test import SimpleTestCase

from apps.visualization.constants import MAX_UPLOAD_SIZE
from apps.visualization.exceptions import FileTooLarge, InvalidFileType, ParseError
from apps.visualization.schema import ChartKind, ColumnType
from apps.visualization.services.chart_recommender import ChartRecommender
from apps.visualization.services.loader import DatasetLoader, coerce_value
from apps.visualization.services.profiler import ColumnTypeProfiler
from apps.visualization.services.visualizer_service import VisualizationService

SALES_CSV = "Region,Sales\nEast,100\nWest,200\n"


def make_upload(content, name="data.csv", content_type="text/csv"):
    if isinstance(content, str):
        content = content.encode("utf-8")
    return SimpleUploadedFile(name, content, content_type=content_type)


class TestCoerceValue(SimpleTestCase):
    def test_numbers_become_int_or_float(self):
        self.assertEqual(coerce_value("42"), 42)
        self.assertIsInstance(coerce_value("42"), int)
        self.assertEqual(coerce_value("-3.5"), -3.5)
        self.assertEqual(coerce_value("1e3"), 1000.0)
        self.assertEqual(coerce_value(" 7 "), 7)

    def test_empty_cell_is_none(self):
        self.assertIsNone(coerce_value(""))

    def test_text_is_kept_verbatim(self):
        self.assertEqual(coerce_value("East"), "East")
        self.assertEqual(coerce_value("  "), "  ")
        self.assertEqual(coerce_value("12abc"), "12abc")

    def test_integers_beyond_safe_range_stay_text(self):
        self.assertEqual(coerce_value("9007199254740993"), "9007199254740993")

    def test_nan_and_infinity_words_stay_text(self):
        self.assertEqual(coerce_value("nan"), "nan")
        self.assertEqual(coerce_value("inf"), "inf")


class TestDatasetLoader(SimpleTestCase):
    def setUp(self):
        self.loader = DatasetLoader()

    def test_ingest_keeps_header_order_and_counts_rows(self):
        table = self.loader.ingest(
            make_upload("Region,Sales,Date\nEast,100,2024-01-01\nWest,200.5,2024-02-01\n")
        )

        self.assertEqual(table.headers, ["Region", "Sales", "Date"])
        self.assertEqual(table.total_row_count, 2)
        self.assertEqual(len(table.rows), table.total_row_count)
        self.assertEqual(
            table.rows[0], {"Region": "East", "Sales": 100, "Date": "2024-01-01"}
        )
        self.assertEqual(table.rows[1]["Sales"], 200.5)

    def test_empty_cells_become_none(self):
        table = self.loader.ingest(make_upload("a,b\n1,\n,x\n"))

        self.assertEqual(table.rows, [{"a": 1, "b": None}, {"a": None, "b": "x"}])

    def test_blank_lines_are_skipped_and_headers_trimmed(self):
        table = self.loader.ingest(make_upload("\n  Name , Score \n\nAnn,3\n\nBob,4\n\n"))

        self.assertEqual(table.headers, ["Name", "Score"])
        self.assertEqual(table.total_row_count, 2)
        self.assertEqual(table.rows[1], {"Name": "Bob", "Score": 4})

    def test_quoted_fields(self):
        table = self.loader.ingest(
            make_upload('name,notes\n"Smith, J","said ""hi"""\n')
        )

        self.assertEqual(table.rows[0], {"name": "Smith, J", "notes": 'said "hi"'})

    def test_preview_holds_first_five_rows(self):
        content = "n\n" + "".join(f"{i}\n" for i in range(8))
        table = self.loader.ingest(make_upload(content))

        self.assertEqual(table.total_row_count, 8)
        self.assertEqual([row["n"] for row in table.preview], [0, 1, 2, 3, 4])

    def test_duplicate_headers_last_value_wins(self):
        table = self.loader.ingest(make_upload("a,b,a\n1,2,3\n"))

        self.assertEqual(table.headers, ["a", "b"])
        self.assertEqual(table.rows[0], {"a": 3, "b": 2})

    def test_utf8_bom_is_stripped(self):
        table = self.loader.ingest(make_upload(b"\xef\xbb\xbfname\nx\n"))

        self.assertEqual(table.headers, ["name"])

    def test_latin1_fallback(self):
        table = self.loader.ingest(make_upload(b"city\ncaf\xe9\n"))

        self.assertEqual(table.rows[0]["city"], "café")

    def test_non_csv_file_is_rejected(self):
        with self.assertRaises(InvalidFileType):
            self.loader.ingest(
                make_upload(SALES_CSV, name="data.txt", content_type="text/plain")
            )

    def test_csv_content_type_is_enough(self):
        table = self.loader.ingest(make_upload(SALES_CSV, name="export"))

        self.assertEqual(table.headers, ["Region", "Sales"])

    def test_extension_check_ignores_case(self):
        table = self.loader.ingest(
            make_upload(SALES_CSV, name="DATA.CSV", content_type="text/plain")
        )

        self.assertEqual(table.total_row_count, 2)

    def test_file_over_limit_is_rejected(self):
        upload = make_upload(SALES_CSV)
        upload.size = MAX_UPLOAD_SIZE + 1

        with self.assertRaises(FileTooLarge) as ctx:
            self.loader.ingest(upload)
        self.assertEqual(ctx.exception.limit, MAX_UPLOAD_SIZE)

    def test_file_at_limit_is_accepted(self):
        upload = make_upload(SALES_CSV)
        upload.size = MAX_UPLOAD_SIZE

        self.assertEqual(self.loader.ingest(upload).total_row_count, 2)

    def test_type_is_checked_before_size(self):
        upload = make_upload(SALES_CSV, name="data.txt", content_type="text/plain")
        upload.size = MAX_UPLOAD_SIZE * 2

        with self.assertRaises(InvalidFileType):
            self.loader.ingest(upload)

    def test_row_with_too_few_fields_aborts(self):
        with self.assertRaises(ParseError) as ctx:
            self.loader.ingest(make_upload("a,b\n1,2\n3\n4,5\n"))
        self.assertIn("Too few fields", ctx.exception.message)
        self.assertIn("expected 2 fields but parsed 1", ctx.exception.message)

    def test_trailing_empty_cell_is_not_a_short_row(self):
        table = self.loader.ingest(make_upload("a,b\n1,2\n4,\n"))

        self.assertEqual(table.rows[1], {"a": 4, "b": None})

    def test_long_cell_within_size_limit_is_accepted(self):
        content = "a,b\n" + "x" * 200_000 + ",1\n"

        table = self.loader.ingest(make_upload(content, name="big.csv"))

        self.assertEqual(len(table.rows[0]["a"]), 200_000)
        self.assertEqual(table.rows[0]["b"], 1)

    def test_row_with_too_many_fields_aborts(self):
        with self.assertRaises(ParseError) as ctx:
            self.loader.ingest(make_upload("a,b\n1,2,3\n"))
        self.assertIn("Expected 2 fields", ctx.exception.message)

    def test_unterminated_quote_aborts(self):
        with self.assertRaises(ParseError) as ctx:
            self.loader.ingest(make_upload('a,b\n1,"oops\n'))
        self.assertTrue(ctx.exception.message.startswith("Error parsing CSV:"))

    def test_empty_file_aborts(self):
        with self.assertRaises(ParseError) as ctx:
            self.loader.parse_text("\n\n")
        self.assertIn("No columns to parse from file", ctx.exception.message)

    def test_undecodable_utf8_falls_back_to_latin1(self):
        self.assertEqual(DatasetLoader._decode(b"\xff\xfe"), "\xff\xfe")

    def test_header_only_file_has_no_rows(self):
        table = self.loader.ingest(make_upload("a,b\n"))

        self.assertEqual(table.headers, ["a", "b"])
        self.assertEqual(table.rows, [])


class TestColumnTypeProfiler(SimpleTestCase):
    def setUp(self):
        self.profiler = ColumnTypeProfiler()

    def test_region_sales_example(self):
        rows = [{"Region": "East", "Sales": 100}, {"Region": "West", "Sales": 200}]

        result = self.profiler.classify(["Region", "Sales"], rows)

        self.assertEqual(
            result, {"Region": ColumnType.CATEGORICAL, "Sales": ColumnType.NUMERIC}
        )

    def test_all_empty_column_is_unknown(self):
        rows = [{"a": None, "b": 1}, {"a": "", "b": 2}, {"b": 3}]

        result = self.profiler.classify(["a", "b"], rows)

        self.assertEqual(result["a"], ColumnType.UNKNOWN)

    def test_nan_counts_as_missing(self):
        result = self.profiler.classify(["a"], [{"a": float("nan")}])

        self.assertEqual(result["a"], ColumnType.UNKNOWN)

    def test_numeric_strings_are_numeric(self):
        rows = [{"a": "10"}, {"a": "20.5"}, {"a": 3}]

        self.assertEqual(self.profiler.classify(["a"], rows)["a"], ColumnType.NUMERIC)

    def test_numeric_wins_over_date(self):
        rows = [{"year": 2020}, {"year": "2021"}]

        self.assertEqual(
            self.profiler.classify(["year"], rows)["year"], ColumnType.NUMERIC
        )

    def test_dates(self):
        rows = [{"d": "2024-01-15"}, {"d": "2024-02-20"}, {"d": "2024-03-01"}]

        self.assertEqual(self.profiler.classify(["d"], rows)["d"], ColumnType.DATE)

    def test_month_names_are_dates(self):
        rows = [{"m": "Jan"}, {"m": "Feb"}]

        self.assertEqual(self.profiler.classify(["m"], rows)["m"], ColumnType.DATE)

    def test_mixed_values_are_categorical(self):
        rows = [{"d": "2024-01-15"}, {"d": "East"}]

        self.assertEqual(
            self.profiler.classify(["d"], rows)["d"], ColumnType.CATEGORICAL
        )

    def test_only_first_twenty_values_are_sampled(self):
        rows = [{"a": i} for i in range(20)] + [{"a": "text"}]
        self.assertEqual(self.profiler.classify(["a"], rows)["a"], ColumnType.NUMERIC)

        rows = [{"a": i} for i in range(19)] + [{"a": "text"}]
        self.assertEqual(
            self.profiler.classify(["a"], rows)["a"], ColumnType.CATEGORICAL
        )

    def test_missing_values_do_not_use_up_the_sample(self):
        rows = [{"a": None} for _ in range(25)] + [{"a": 5}, {"a": 6}]

        self.assertEqual(self.profiler.classify(["a"], rows)["a"], ColumnType.NUMERIC)

    def test_classification_is_idempotent(self):
        headers = ["Region", "Sales", "When"]
        rows = [
            {"Region": "East", "Sales": 1, "When": "2024-01-01"},
            {"Region": "West", "Sales": None, "When": "2024-01-02"},
        ]

        self.assertEqual(
            self.profiler.classify(headers, rows), self.profiler.classify(headers, rows)
        )

    def test_group_by_type_keeps_header_order(self):
        groups = ColumnTypeProfiler.group_by_type(
            {
                "b": ColumnType.NUMERIC,
                "a": ColumnType.CATEGORICAL,
                "c": "numeric",
            }
        )

        self.assertEqual(groups["numeric"], ["b", "c"])
        self.assertEqual(groups["categorical"], ["a"])
        self.assertEqual(groups["date"], [])
        self.assertEqual(groups["unknown"], [])


class TestChartRecommender(SimpleTestCase):
    def setUp(self):
        self.recommender = ChartRecommender()

    def suggest(self, column_types):
        return self.recommender.suggest(list(column_types), column_types)

    def test_categorical_and_numeric_give_bar_then_pie(self):
        suggestions = self.suggest(
            {"Region": ColumnType.CATEGORICAL, "Sales": ColumnType.NUMERIC}
        )

        self.assertEqual(
            [(s.kind, s.title) for s in suggestions],
            [
                ("bar", "Sales by Region"),
                ("pie", "Distribution of Sales across Region"),
            ],
        )
        self.assertEqual(suggestions[0].fields, {"x": "Region", "y": "Sales"})
        self.assertIn("Region", suggestions[0].description)

    def test_first_columns_follow_header_order(self):
        suggestions = self.suggest(
            {
                "Profit": ColumnType.NUMERIC,
                "Store": ColumnType.CATEGORICAL,
                "Sales": ColumnType.NUMERIC,
                "Region": ColumnType.CATEGORICAL,
            }
        )

        self.assertEqual(suggestions[0].title, "Profit by Store")

    def test_date_and_numeric_give_line(self):
        suggestions = self.suggest({"Day": ColumnType.DATE, "Visits": ColumnType.NUMERIC})

        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].kind, ChartKind.LINE)
        self.assertEqual(suggestions[0].title, "Visits over time")
        self.assertEqual(suggestions[0].fields, {"x": "Day", "y": "Visits"})

    def test_all_rules_append_in_order(self):
        suggestions = self.suggest(
            {
                "Day": ColumnType.DATE,
                "Region": ColumnType.CATEGORICAL,
                "Sales": ColumnType.NUMERIC,
            }
        )

        self.assertEqual([s.kind for s in suggestions], ["bar", "pie", "line"])

    def test_two_numeric_columns_give_one_scatter(self):
        suggestions = self.suggest(
            {
                "Height": ColumnType.NUMERIC,
                "Weight": ColumnType.NUMERIC,
                "Age": ColumnType.NUMERIC,
            }
        )

        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].kind, "scatter")
        self.assertEqual(suggestions[0].title, "Height vs Weight")
        self.assertEqual(suggestions[0].fields, {"x": "Height", "y": "Weight"})

    def test_single_numeric_column_gives_summary_bar(self):
        suggestions = self.suggest(
            {"Sales": ColumnType.NUMERIC, "Notes": ColumnType.UNKNOWN}
        )

        self.assertEqual(len(suggestions), 1)
        self.assertEqual(suggestions[0].kind, "bar")
        self.assertEqual(suggestions[0].title, "Sales Summary")

    def test_no_numeric_columns_give_table(self):
        for column_types in (
            {"Region": ColumnType.CATEGORICAL},
            {"Day": ColumnType.DATE, "Region": ColumnType.CATEGORICAL},
            {},
        ):
            suggestions = self.suggest(column_types)

            self.assertEqual(len(suggestions), 1)
            self.assertEqual(suggestions[0].kind, "table")
            self.assertEqual(suggestions[0].title, "Data Table")


class TestVisualizationService(SimpleTestCase):
    def test_analyze_runs_the_whole_pipeline(self):
        result = VisualizationService(delay_seconds=0).analyze(make_upload(SALES_CSV))

        self.assertEqual(result.file_name, "data.csv")
        self.assertEqual(result.file_size, len(SALES_CSV))
        self.assertEqual(result.column_types["Region"], ColumnType.CATEGORICAL)
        self.assertEqual([s.kind for s in result.suggestions], ["bar", "pie"])

        summary = json.loads(json.dumps(result.to_dict()))
        self.assertEqual(summary["column_types"], {"Region": "categorical", "Sales": "numeric"})
        self.assertEqual(summary["total_row_count"], 2)
        self.assertEqual(summary["suggestions"][1]["title"], "Distribution of Sales across Region")

    def test_ingest_errors_propagate(self):
        with self.assertRaises(InvalidFileType):
            VisualizationService(delay_seconds=0).analyze(
                make_upload(SALES_CSV, name="a.json", content_type="application/json")
            )

    @mock.patch("apps.visualization.services.visualizer_service.time.sleep")
    def test_configured_delay_is_applied(self, sleep):
        VisualizationService(delay_seconds=0.5).analyze(make_upload(SALES_CSV))

        sleep.assert_called_once_with(0.5)


class TestAnalyzeCsvCommand(SimpleTestCase):
    def write_csv(self, content, suffix=".csv"):
        handle = tempfile.NamedTemporaryFile(
            "w", suffix=suffix, delete=False, encoding="utf-8"
        )
        with handle:
            handle.write(content)
        self.addCleanup(os.remove, handle.name)
        return handle.name

    def test_prints_types_and_suggestions(self):
        out = StringIO()
        call_command("analyze_csv", self.write_csv(SALES_CSV), stdout=out)

        output = out.getvalue()
        self.assertIn("2 rows, 2 columns", output)
        self.assertIn("Region: categorical", output)
        self.assertIn("[bar] Sales by Region", output)

    def test_json_output(self):
        out = StringIO()
        call_command("analyze_csv", self.write_csv(SALES_CSV), "--json", stdout=out)

        data = json.loads(out.getvalue())
        self.assertEqual(data["headers"], ["Region", "Sales"])
        self.assertEqual(data["suggestions"][0]["kind"], "bar")

    def test_missing_file(self):
        with self.assertRaises(CommandError):
            call_command("analyze_csv", "/does/not/exist.csv", stdout=StringIO())

    def test_rejected_file(self):
        with self.assertRaises(CommandError):
            call_command("analyze_csv", self.write_csv(SALES_CSV, suffix=".txt"))

    def test_parse_error(self):
        with self.assertRaises(CommandError) as ctx:
            call_command("analyze_csv", self.write_csv("a,b\n1\n"))
        self.assertIn("Too few fields", str(ctx.exception))
