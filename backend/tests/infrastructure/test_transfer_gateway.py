"""In-memory transfer gateway - credits, rejection and receive hooks."""

from invoice_ledger.infrastructure.transfer_gateway import InMemoryTransferGateway


def test_send_credits_recipient():
    gateway = InMemoryTransferGateway()
    assert gateway.send("0xA", 10) is True
    assert gateway.send("0xA", 5) is True
    assert gateway.total_received("0xA") == 15
    assert gateway.transfers == [("0xA", 10), ("0xA", 5)]


def test_rejecting_recipient():
    gateway = InMemoryTransferGateway()
    gateway.reject("0xA")
    assert gateway.send("0xA", 10) is False
    assert gateway.total_received("0xA") == 0
    gateway.accept("0xA")
    assert gateway.send("0xA", 10) is True


def test_hook_can_refuse():
    gateway = InMemoryTransferGateway()
    seen = []

    def hook(amount):
        seen.append(amount)
        return amount < 100

    gateway.on_receive("0xA", hook)
    assert gateway.send("0xA", 50) is True
    assert gateway.send("0xA", 150) is False
    assert seen == [50, 150]
    assert gateway.total_received("0xA") == 50

    gateway.on_receive("0xA", None)
    assert gateway.send("0xA", 150) is True
