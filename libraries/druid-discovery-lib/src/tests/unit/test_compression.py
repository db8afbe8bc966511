"""Tests for the gzip compression provider."""

import gzip

from druid_discovery.connection.compression import GzipCompressionProvider


def test_compress_gzips_when_enabled():
    provider = GzipCompressionProvider(compress_output=True)
    compressed = provider.compress("/druid/x", b"payload")
    assert compressed != b"payload"
    assert gzip.decompress(compressed) == b"payload"


def test_compress_passes_through_when_disabled():
    provider = GzipCompressionProvider(compress_output=False)
    assert provider.compress("/druid/x", b"payload") == b"payload"


def test_decompress_gzipped_payload():
    provider = GzipCompressionProvider(compress_output=False)
    assert provider.decompress("/druid/x", gzip.compress(b'{"a": 1}')) == b'{"a": 1}'


def test_decompress_plain_payload_is_returned_unchanged():
    provider = GzipCompressionProvider()
    assert provider.decompress("/druid/x", b'{"address": "h"}') == b'{"address": "h"}'


def test_decompress_truncated_gzip_is_returned_unchanged():
    provider = GzipCompressionProvider()
    truncated = gzip.compress(b"some longer payload to compress")[:12]
    assert provider.decompress("/druid/x", truncated) == truncated


def test_decompress_empty_payload():
    provider = GzipCompressionProvider()
    assert provider.decompress("/druid/x", b"") == b""
