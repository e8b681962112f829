"""
Import Pipeline Errors.

Each failure kind of the import pipeline is a distinct exception carrying the
stage it was raised in and a message that can be shown to the user as-is.
Row-level problems never surface here; they only increment the dropped-row
counter of the assembler.
"""
from typing import List

# Pipeline stages, in execution order
STAGE_DECODING = 'Decoding'
STAGE_HEADER_SEARCH = 'HeaderSearch'
STAGE_COLUMN_MAPPING = 'ColumnMapping'
STAGE_ROW_EXTRACTION = 'RowExtraction'


class TradeImportError(Exception):
    """Base class for terminal failures of one import attempt."""
    stage = STAGE_DECODING
    title = 'Import Failed'


class UnsupportedFileTypeError(TradeImportError):
    title = 'Unsupported File Type'

    def __init__(self, file_name: str) -> None:
        self.file_name = file_name
        super().__init__(f"'{file_name}' is not supported. Please upload a .csv or .xlsx file.")


class DecodeError(TradeImportError):
    title = 'Error Parsing File'


class NoHeaderFoundError(TradeImportError):
    stage = STAGE_HEADER_SEARCH
    title = 'Invalid File Format'

    def __init__(self) -> None:
        super().__init__(
            "Could not find a valid header row. Please ensure the file contains "
            "columns like 'Time', 'Price', 'Symbol', etc."
        )


class MissingColumnsError(TradeImportError):
    stage = STAGE_COLUMN_MAPPING
    title = 'Mapping Failed'

    def __init__(self, missing: List[str]) -> None:
        self.missing = list(missing)
        super().__init__(
            f"Could not find required columns: {', '.join(self.missing)}. Please check your file."
        )


class NoValidTradesError(TradeImportError):
    stage = STAGE_ROW_EXTRACTION
    title = 'No Valid Trades Found'

    def __init__(self, dropped_rows: int) -> None:
        self.dropped_rows = dropped_rows
        super().__init__(
            f"The file was parsed, but no valid trade rows could be extracted "
            f"({dropped_rows} rows rejected). Please check the data."
        )


class TradeNotFoundError(KeyError):
    pass
