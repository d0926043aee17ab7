class HuffmanError(ValueError):
  pass

class InvalidInputError(HuffmanError):
  pass

class EncodingError(HuffmanError):
  pass

class TruncatedStreamError(HuffmanError):
  pass

class MalformedHeaderError(HuffmanError):
  pass
