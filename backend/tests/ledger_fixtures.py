"""Shared test constants and the FakeClock used across ledger tests."""

NOW = 1_700_000_000
DAY = 86_400
MATURITY = NOW + 30 * DAY

ISSUER = "0xIssuer"
BUYER = "0xBuyer"
OTHER_BUYER = "0xOtherBuyer"
DOC_HASH = "QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG"


class FakeClock:
    """Callable clock returning a settable unix timestamp."""

    def __init__(self, now: int = NOW):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds

    def move_to(self, timestamp: int) -> None:
        self.now = timestamp
