"""Gzip compression for znode payloads.

Druid may write announcements gzipped or plain depending on its own
configuration, so decompression must accept both.
"""

from __future__ import annotations

import gzip
import logging
import zlib

logger = logging.getLogger(__name__)


class GzipCompressionProvider:
    """Gzip codec that passes uncompressed payloads through.

    Parameters:
        compress_output:
            Whether :meth:`compress` gzips data.  When False, data is
            written unchanged.
    """

    def __init__(self, compress_output: bool = True) -> None:
        self._compress_output = compress_output

    @property
    def compress_output(self) -> bool:
        return self._compress_output

    def compress(self, path: str, data: bytes) -> bytes:
        if not self._compress_output:
            return data
        return gzip.compress(data)

    def decompress(self, path: str, data: bytes) -> bytes:
        """Gunzip *data*, returning it unchanged if it is not gzip."""
        try:
            return gzip.decompress(data)
        except (OSError, EOFError, zlib.error):
            logger.debug("Payload of %s is not gzipped, using it as is", path)
            return data
