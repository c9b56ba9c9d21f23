from __future__ import annotations


class GenerationFailure(RuntimeError):
    """Raised when the generation model cannot produce a usable batch."""

    def __init__(self, message: str, *, error_kind: str, raw_snippet: str | None = None):
        super().__init__(message)
        self.error_kind = str(error_kind)
        self.raw_snippet = raw_snippet


class LinesParseError(ValueError):
    def __init__(self, message: str, *, error_kind: str, raw_snippet: str | None = None):
        super().__init__(message)
        self.error_kind = error_kind
        self.raw_snippet = raw_snippet


GENERATION_TIMEOUT = "GENERATION_TIMEOUT"
GENERATION_NETWORK = "GENERATION_NETWORK"
GENERATION_HTTP_STATUS = "GENERATION_HTTP_STATUS"
GENERATION_EMPTY = "GENERATION_EMPTY"
GENERATION_PARSE = "GENERATION_PARSE"

LINES_JSON_PARSE = "LINES_JSON_PARSE"
LINES_SCHEMA_VALIDATE = "LINES_SCHEMA_VALIDATE"
LINES_OUTPUT_SHAPE = "LINES_OUTPUT_SHAPE"
