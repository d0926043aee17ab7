import struct

from bitarray import bitarray

CHUNK_SIZE = 64 * 1024

class BitWriter:
  def __init__(self, stream):
    self.stream = stream
    self.buffer = bitarray(endian='big')
    self.bits_written = 0
    self.bytes_written = 0

  def write_bit(self, bit):
    self.buffer.append(bit)
    self.bits_written += 1
    if len(self.buffer) >= CHUNK_SIZE * 8:
      self._drain()

  def bits(self, bits):
    self.buffer.extend(bits)
    self.bits_written += len(bits)
    if len(self.buffer) >= CHUNK_SIZE * 8:
      self._drain()

  def raw(self, data):
    bits = bitarray(endian='big')
    bits.frombytes(data)
    self.bits(bits)

  def uint16(self, uint16):
    self.raw(struct.pack('>H', uint16))

  def uint64(self, uint64):
    self.raw(struct.pack('>Q', uint64))

  def flush(self):
    # tobytes() zero-fills the last partial byte
    self._write(self.buffer.tobytes())
    self.buffer.clear()
    if hasattr(self.stream, 'flush'):
      self.stream.flush()

  def _drain(self):
    whole = len(self.buffer) // 8 * 8
    if whole:
      self._write(self.buffer[:whole].tobytes())
      del self.buffer[:whole]

  def _write(self, data):
    self.stream.write(data)
    self.bytes_written += len(data)

class BitReader:
  def __init__(self, stream):
    self.stream = stream
    self.buffer = bitarray(endian='big')
    self.position = 0
    self.bytes_read = 0

  def read_bit(self):
    if self.position >= len(self.buffer) and not self._fill():
      return None

    bit = self.buffer[self.position]
    self.position += 1
    return bit

  def bits(self, length):
    while len(self.buffer) - self.position < length:
      if not self._fill():
        raise EOFError('wanted {} bits, stream has {}'.format(
          length, len(self.buffer) - self.position))

    bits = self.buffer[self.position:self.position + length]
    self.position += length
    return bits

  def raw(self, length):
    return self.bits(length * 8).tobytes()

  def uint16(self):
    return self._unpack_format('>H')

  def uint64(self):
    return self._unpack_format('>Q')

  def _unpack_format(self, format):
    return struct.unpack(format, self.raw(struct.calcsize(format)))[0]

  def _fill(self):
    chunk = self.stream.read(CHUNK_SIZE)
    if not chunk:
      return False

    del self.buffer[:self.position]
    self.position = 0
    self.buffer.frombytes(chunk)
    self.bytes_read += len(chunk)
    return True
