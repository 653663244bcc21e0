MAX_UPLOAD_SIZE = 5 * 1024 * 1024

PREVIEW_ROW_COUNT = 5

# Non-empty values per column used for type inference.
TYPE_SAMPLE_SIZE = 20

CSV_EXTENSION = ".csv"

CSV_CONTENT_TYPES = ("text/csv", "application/csv")

CSV_ENCODING = "utf-8-sig"

CSV_FALLBACK_ENCODING = "latin-1"

# Numbers outside this range keep their text form.
MAX_SAFE_INTEGER = 2**53 - 1

TABLE_TITLE = "Data Table"
