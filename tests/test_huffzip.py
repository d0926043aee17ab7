import io
import random

import pytest

from errors import MalformedHeaderError, TruncatedStreamError
from huffman import MAGIC, PSEUDO_EOF
from huffzip import code_listing, compress, compress_bytes, decompress, decompress_bytes, main, symbol_name


@pytest.fixture
def noisy():
  rng = random.Random(1234)
  return bytes(rng.choice(b'aaaaaaaabbbbccd\x00\xff') for _ in range(5000))


class TestRoundTrip:

  @pytest.mark.parametrize('original', [
    b'',
    b'a',
    b'aaab',
    b'z' * 1000,
    bytes(range(256)) * 3,
    'Huffman coding, ünïcödé too'.encode('utf8'),
  ], ids=['empty', 'one-byte', 'aaab', 'repeated', 'all-bytes', 'utf8'])
  def test_round_trip(self, original):
    assert decompress_bytes(compress_bytes(original)) == original

  def test_round_trip_noisy(self, noisy):
    assert decompress_bytes(compress_bytes(noisy)) == noisy

  def test_str_input_is_utf8(self):
    assert decompress_bytes(compress_bytes('café')) == 'café'.encode('utf8')

  def test_deterministic(self, noisy):
    assert compress_bytes(noisy) == compress_bytes(noisy)

  def test_empty_input_is_header_only(self):
    assert compress_bytes(b'') == MAGIC + b'\x00\x01' + b'\x01\x00' + (1).to_bytes(8, 'big')

  def test_aaab_output(self):
    compressed = compress_bytes(b'aaab')

    assert len(compressed) == 4 + 2 + 3 * 10 + 1
    assert compressed[-1] == 0b11100010

  def test_trailing_bytes_are_ignored(self):
    assert decompress_bytes(compress_bytes(b'aaab') + b'\xff\xff') == b'aaab'

  def test_skewed_input_shrinks(self):
    original = b'a' * 10000 + b'b'

    assert len(compress_bytes(original)) < len(original) // 4


class TestStreams:

  def test_compress_rewinds_from_start_position(self):
    source = io.BytesIO(b'skip:payload')
    source.seek(5)
    packed = io.BytesIO()

    stats = compress(source, packed)

    assert stats.input_bytes == len(b'payload')
    assert stats.output_bytes == len(packed.getvalue())
    assert decompress_bytes(packed.getvalue()) == b'payload'

  def test_decompress_stats(self, noisy):
    output = io.BytesIO()

    stats = decompress(io.BytesIO(compress_bytes(noisy)), output)

    assert stats.output_bytes == len(noisy)
    assert output.getvalue() == noisy

  def test_malformed_header(self):
    with pytest.raises(MalformedHeaderError):
      decompress_bytes(b'not huffman data')

  def test_truncated_payload(self, noisy):
    compressed = compress_bytes(noisy)

    with pytest.raises(TruncatedStreamError):
      decompress_bytes(compressed[:-20], strict=True)


class TestCodeListing:

  def test_shortest_codes_first(self):
    table = {97: 3, 98: 1, PSEUDO_EOF: 1}
    codes = {98: '00', PSEUDO_EOF: '01', 97: '1'}

    lines = code_listing(table, codes).splitlines()

    assert [line.split() for line in lines] == [
      ['a', '3', '1'],
      ['b', '1', '00'],
      ['EOF', '1', '01'],
    ]

  def test_symbol_names(self):
    assert symbol_name(PSEUDO_EOF) == 'EOF'
    assert symbol_name(ord('x')) == 'x'
    assert symbol_name(0x20) == '0x20'
    assert symbol_name(0xff) == '0xff'


class TestMain:

  @pytest.fixture
  def source(self, tmp_path, noisy):
    path = tmp_path / 'source.bin'
    path.write_bytes(noisy)
    return path

  def test_compress_then_decompress(self, tmp_path, source):
    packed = tmp_path / 'source.huf'
    restored = tmp_path / 'restored.bin'

    assert main(['compress', str(source), str(packed)]) == 0
    assert main(['decompress', str(packed), str(restored)]) == 0
    assert restored.read_bytes() == source.read_bytes()
    assert packed.stat().st_size < source.stat().st_size

  def test_codes(self, tmp_path, source):
    listing = tmp_path / 'codes.txt'

    assert main(['codes', str(source), str(listing)]) == 0
    assert 'EOF' in listing.read_text()

  def test_bad_input_fails(self, tmp_path, source, caplog):
    restored = tmp_path / 'restored.bin'

    assert main(['decompress', str(source), str(restored)]) == 1
    assert 'decompress failed' in caplog.text

  def test_missing_file_fails(self, tmp_path, caplog):
    assert main(['compress', str(tmp_path / 'missing'), str(tmp_path / 'out')]) == 1
    assert 'compress failed' in caplog.text
