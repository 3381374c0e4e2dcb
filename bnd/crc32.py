# bnd/crc32.py

"""Table-driven CRC-32 used for the hashed entry paths."""
from typing import List

CRC32_POLYNOMIAL = 0xEDB88320
CRC32_INIT = 0xFFFFFFFF


class Crc32:
    """
    Reflected CRC-32 (ISO-HDLC), the variant the archive authors hashed
    entry paths with. Identical to zlib.crc32 for every input.
    """

    def __init__(self, polynomial: int = CRC32_POLYNOMIAL):
        self.polynomial = polynomial
        self._table: List[int] = self._build_table(polynomial)

    @staticmethod
    def _build_table(polynomial: int) -> List[int]:
        table = []
        for i in range(256):
            value = i
            for _ in range(8):
                if value & 1:
                    value = (value >> 1) ^ polynomial
                else:
                    value >>= 1
            table.append(value)
        return table

    def compute(self, data: bytes) -> int:
        """Returns the unsigned 32-bit checksum of data."""
        crc = CRC32_INIT
        table = self._table
        for byte in data:
            crc = (crc >> 8) ^ table[(crc & 0xFF) ^ byte]
        return ~crc & 0xFFFFFFFF

    def compute_text(self, text: str, encoding: str = 'utf-8') -> int:
        return self.compute(text.encode(encoding))


# Shared engine, the table only needs building once per process
default_engine = Crc32()


def crc32_text(text: str, encoding: str = 'utf-8') -> int:
    """Checksum of a path string as stored in the TOC."""
    return default_engine.compute_text(text, encoding)
