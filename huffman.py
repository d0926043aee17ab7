import heapq
import itertools
import logging
from collections import Counter, namedtuple

from bitarray import bitarray

from bitstream import CHUNK_SIZE
from errors import EncodingError, InvalidInputError, MalformedHeaderError, TruncatedStreamError

logger = logging.getLogger(__name__)

PSEUDO_EOF = 256

MAGIC = b'HUF1'

OUTPUT_BATCH = 64 * 1024

Leaf = namedtuple('Leaf', ('symbol', 'count'))
Node = namedtuple('Node', ('zero', 'one', 'count'))

def _chunks(input):
  if isinstance(input, (bytes, bytearray, memoryview)):
    return [input]
  if hasattr(input, 'read'):
    return iter(lambda: input.read(CHUNK_SIZE), b'')
  return input

def build_frequency_table(input):
  counts = Counter()
  for chunk in _chunks(input):
    counts.update(chunk)

  table = dict(counts)
  table[PSEUDO_EOF] = table.get(PSEUDO_EOF, 0) + 1
  return table

def build_encoding_tree(table):
  """Merges the two lightest nodes until one root is left.

  Leaves are queued in ascending symbol order and every queued node gets the
  next sequence number, so nodes of equal weight leave the heap in the order
  they entered it and the same table always gives the same tree.
  """
  if not table:
    raise InvalidInputError('cannot build a tree from an empty frequency table')

  sequence = itertools.count()
  heap = [(count, next(sequence), Leaf(symbol=symbol, count=count))
          for symbol, count in sorted(table.items())]
  heapq.heapify(heap)

  while len(heap) > 1:
    _, _, zero = heapq.heappop(heap)
    _, _, one = heapq.heappop(heap)

    parent = Node(zero=zero, one=one, count=zero.count + one.count)
    heapq.heappush(heap, (parent.count, next(sequence), parent))

  root = heap[0][2]
  logger.debug('built tree of %d leaves, total weight %d', len(table), root.count)
  return root

def build_code_table(node, path=''):
  if isinstance(node, Node):
    table = build_code_table(node.zero, path=path + '0')
    table.update(build_code_table(node.one, path=path + '1'))
    return table
  else:
    return {node.symbol: path}

def look_up_code(codes, symbol):
  try:
    return codes[symbol]
  except KeyError:
    raise EncodingError('symbol ({}) not found in code table'.format(symbol)) from None

def encode(input, codes, writer):
  bit_codes = {symbol: bitarray(code, endian='big') for symbol, code in codes.items()}
  start = writer.bits_written

  for chunk in _chunks(input):
    for byte in chunk:
      writer.bits(look_up_code(bit_codes, byte))
  writer.bits(look_up_code(bit_codes, PSEUDO_EOF))

  payload_bits = writer.bits_written - start
  logger.debug('encoded payload of %d bits', payload_bits)
  return payload_bits

def decode(reader, root, output, strict=False):
  """Walks the tree one bit at a time, writing each byte leaf to output.

  Leaves are entered without consuming a bit. Decoding stops on the
  end-of-stream leaf, so padding after its code is never read.

  If the bits run out while the walk sits at the root, the stream is taken
  to end there unless strict is set. Running out anywhere else raises
  TruncatedStreamError.
  """
  if isinstance(root, Leaf) and root.symbol != PSEUDO_EOF:
    raise InvalidInputError('single leaf tree ({}) has no end-of-stream code'.format(root.symbol))

  pending = bytearray()
  emitted = 0
  node = root

  while True:
    if isinstance(node, Leaf):
      if node.symbol == PSEUDO_EOF:
        break

      pending.append(node.symbol)
      if len(pending) >= OUTPUT_BATCH:
        output.write(pending)
        emitted += len(pending)
        pending = bytearray()

      node = root
      continue

    bit = reader.read_bit()
    if bit is None:
      if node is root and not strict:
        logger.debug('bit stream ended without end-of-stream code')
        break
      raise TruncatedStreamError('bit stream ended after {} bytes, before the end-of-stream code'.format(
        emitted + len(pending)))

    node = node.one if bit else node.zero

  output.write(pending)
  emitted += len(pending)
  return emitted

def write_table(table, writer):
  writer.raw(MAGIC)
  writer.uint16(len(table))

  for symbol, count in sorted(table.items()):
    writer.uint16(symbol)
    writer.uint64(count)

def read_table(reader):
  try:
    magic = reader.raw(len(MAGIC))
    if magic != MAGIC:
      raise MalformedHeaderError('bad magic {!r}'.format(magic))

    entries = reader.uint16()
    if entries == 0:
      raise MalformedHeaderError('header lists no symbols')

    table = {}
    for _ in range(entries):
      symbol = reader.uint16()
      count = reader.uint64()

      if symbol > PSEUDO_EOF:
        raise MalformedHeaderError('symbol ({}) out of range'.format(symbol))
      if symbol in table:
        raise MalformedHeaderError('symbol ({}) listed twice'.format(symbol))
      if count == 0:
        raise MalformedHeaderError('symbol ({}) has zero count'.format(symbol))

      table[symbol] = count
  except EOFError as e:
    raise MalformedHeaderError('header truncated: {}'.format(e)) from e

  if PSEUDO_EOF not in table:
    raise MalformedHeaderError('header has no end-of-stream symbol')

  return table
