from __future__ import annotations


class ExtractionFailure(Exception):
    """Terminal failure to turn a model response into an assessment.

    ``kind`` is the short machine-readable name carried to the client in the
    terminal ``error`` event.
    """

    kind = "ExtractionFailure"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class NoJsonFound(ExtractionFailure):
    kind = "NoJsonFound"


class FallbackExhausted(ExtractionFailure):
    kind = "FallbackExhausted"


class SchemaIncomplete(ExtractionFailure):
    kind = "SchemaIncomplete"


class StreamInterrupted(ExtractionFailure):
    kind = "StreamInterrupted"
