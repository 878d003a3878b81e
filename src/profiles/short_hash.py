"""
短哈希：profile 短链接的 key。

32 位滚动哈希（h = h * 31 + c，按有符号 32 位整数回绕），取绝对值后转 base36，
截取前 6 位。结果确定但不唯一，36^6 的空间换短 URL；冲突时后写覆盖。
"""

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
SHORT_HASH_LENGTH = 6


def _to_int32(value: int) -> int:
    value &= 0xFFFFFFFF
    return value - 0x100000000 if value & 0x80000000 else value


def _utf16_units(text: str):
    """按 UTF-16 code unit 迭代（BMP 外字符拆成代理对）。"""
    data = text.encode("utf-16-le", "surrogatepass")
    for i in range(0, len(data), 2):
        yield data[i] | (data[i + 1] << 8)


def to_base36(value: int) -> str:
    if value == 0:
        return "0"
    sign = "-" if value < 0 else ""
    value = abs(value)
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return sign + "".join(reversed(digits))


def generate_short_hash(text: str) -> str:
    """Return a deterministic short base-36 hash of ``text`` (at most 6 chars)."""
    h = 0
    for unit in _utf16_units(text):
        h = _to_int32(h * 31 + unit)
    return to_base36(abs(h))[:SHORT_HASH_LENGTH]
