import re
import secrets
import time

ORDER_ID_PREFIX = "ORDER"


class OrderIdGenerator:
    """
    Builds order ids as ``ORDER<epoch-millis><random digits>``.

    The random suffix comes from the OS CSPRNG, so concurrent callers never
    share state or wait on each other.
    """

    def __init__(self, prefix: str = ORDER_ID_PREFIX, suffix_digits: int = 10):
        if suffix_digits < 4:
            raise ValueError("suffix_digits must be at least 4")
        self.prefix = prefix
        self.suffix_digits = suffix_digits
        self._suffix_bound = 10 ** suffix_digits

    def generate(self) -> str:
        millis = time.time_ns() // 1_000_000
        suffix = secrets.randbelow(self._suffix_bound)
        return f"{self.prefix}{millis}{suffix:0{self.suffix_digits}d}"

    def pattern(self) -> str:
        """Regex matching ids produced by this generator."""
        return rf"^{re.escape(self.prefix)}\d{{13,}}\d{{{self.suffix_digits}}}$"
