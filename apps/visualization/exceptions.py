class IngestError(Exception):
    """Base class for everything that stops an uploaded file from being read."""

    code = "ingest_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidFileType(IngestError):
    code = "invalid_file_type"

    def __init__(self, message: str = "Please upload a CSV file"):
        super().__init__(message)


class FileTooLarge(IngestError):
    code = "file_too_large"

    def __init__(self, size: int, limit: int):
        self.size = size
        self.limit = limit
        super().__init__(
            f"File is too large ({size / (1024 * 1024):.2f} MB). "
            f"Maximum size is {limit / (1024 * 1024):.0f} MB."
        )


class ParseError(IngestError):
    code = "parse_error"

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Error parsing CSV: {detail}")
