"""Record encoders.

Each encoder binds a `RecordWriter` to a byte stream:
- json: one document per line, or a single array
- delimited: CSV rows from mapping records
"""

from batch_sink.encoders.delimited import DelimitedRecordEncoder
from batch_sink.encoders.json import JsonRecordEncoder
from batch_sink.models.params import DataFormat, TargetConfig
from batch_sink.protocols import RecordEncoder


def get_encoder(config: TargetConfig) -> RecordEncoder:
    """Select the encoder configured for a stage."""
    match config.data_format:
        case DataFormat.JSON:
            return JsonRecordEncoder(config.json_mode)
        case DataFormat.DELIMITED:
            return DelimitedRecordEncoder(header=config.csv_header)


__all__ = [
    "DelimitedRecordEncoder",
    "JsonRecordEncoder",
    "get_encoder",
]
