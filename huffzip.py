#!/usr/bin/env python3
import argparse
import contextlib
import io
import logging
import sys

from collections import namedtuple

from bitstream import BitReader, BitWriter
from errors import HuffmanError
from huffman import (PSEUDO_EOF, build_code_table, build_encoding_tree, build_frequency_table,
                     decode, encode, read_table, write_table)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'

Stats = namedtuple('Stats', ('input_bytes', 'output_bytes'))

def compress(input, output):
  start = input.tell()
  table = build_frequency_table(input)
  input_bytes = sum(table.values()) - table[PSEUDO_EOF]

  writer = BitWriter(output)
  write_table(table, writer)

  tree = build_encoding_tree(table)
  codes = build_code_table(tree)
  del tree
  logger.debug('%d codes, longest %d bits', len(codes), max(len(code) for code in codes.values()))

  input.seek(start)
  encode(input, codes, writer)
  writer.flush()

  return Stats(input_bytes=input_bytes, output_bytes=writer.bytes_written)

def decompress(input, output, strict=False):
  reader = BitReader(input)
  table = read_table(reader)

  tree = build_encoding_tree(table)
  output_bytes = decode(reader, tree, output, strict=strict)
  del tree

  return Stats(input_bytes=reader.bytes_read, output_bytes=output_bytes)

def compress_bytes(original):
  if isinstance(original, str):
    original = original.encode('utf8')

  output = io.BytesIO()
  compress(io.BytesIO(original), output)
  return output.getvalue()

def decompress_bytes(compressed, strict=False):
  output = io.BytesIO()
  decompress(io.BytesIO(compressed), output, strict=strict)
  return output.getvalue()

def code_listing(table, codes):
  rows = sorted(codes.items(), key=lambda row: (len(row[1]), row[0]))
  return '\n'.join('{:>6} {:>12} {}'.format(symbol_name(symbol), table[symbol], code or '-')
                   for symbol, code in rows)

def symbol_name(symbol):
  if symbol == PSEUDO_EOF:
    return 'EOF'
  if 0x20 < symbol < 0x7f:
    return chr(symbol)
  return '0x{:02x}'.format(symbol)

def setup_logging(level=logging.INFO):
  if not logging.getLogger().handlers:
    logging.basicConfig(level=level, format=LOG_FORMAT, handlers=[logging.StreamHandler(sys.stderr)])
  return logging.getLogger(__name__)

def _open(path, mode):
  if path == '-':
    stream = sys.stdin.buffer if 'r' in mode else sys.stdout.buffer
    return contextlib.nullcontext(stream)
  return open(path, mode)

def _rewindable(stream):
  if stream.seekable():
    return stream
  return io.BytesIO(stream.read())

def _run(mode, input, output, strict):
  if mode == 'compress':
    stats = compress(_rewindable(input), output)
    ratio = stats.output_bytes / stats.input_bytes * 100 if stats.input_bytes else 0.0
    logger.info('compressed %d bytes to %d bytes (%.1f%%)', stats.input_bytes, stats.output_bytes, ratio)
  elif mode == 'decompress':
    stats = decompress(input, output, strict=strict)
    logger.info('decompressed %d bytes', stats.output_bytes)
  else:
    table = build_frequency_table(input)
    codes = build_code_table(build_encoding_tree(table))
    output.write((code_listing(table, codes) + '\n').encode('utf8'))

def main(argv=None):
  parser = argparse.ArgumentParser(prog='huffzip', description='Huffman compress or decompress a file.')
  parser.add_argument('mode', choices=('compress', 'decompress', 'codes'))
  parser.add_argument('input', nargs='?', default='-', help="input file, '-' for stdin")
  parser.add_argument('output', nargs='?', default='-', help="output file, '-' for stdout")
  parser.add_argument('--strict', action='store_true',
                      help='fail when the stream ends before the end-of-stream code')
  parser.add_argument('-v', '--verbose', action='store_true')
  args = parser.parse_args(argv)

  setup_logging(logging.DEBUG if args.verbose else logging.INFO)

  try:
    with _open(args.input, 'rb') as input, _open(args.output, 'wb') as output:
      _run(args.mode, input, output, args.strict)
  except (HuffmanError, OSError) as e:
    logger.error('%s failed: %s', args.mode, e)
    return 1

  return 0

if __name__ == '__main__':
  sys.exit(main())
