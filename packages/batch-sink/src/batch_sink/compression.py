"""Optional gzip wrapping of batch buffers."""

import gzip
from typing import BinaryIO

GZIP_EXTENSION = ".gz"


def open_compressor(buffer: BinaryIO, *, compress: bool) -> BinaryIO:
    """Return the stream records should be written to.

    With compression on this is a gzip stream writing into `buffer`. Closing
    it writes the gzip trailer but leaves `buffer` open.
    """
    if not compress:
        return buffer
    return gzip.GzipFile(fileobj=buffer, mode="wb")
