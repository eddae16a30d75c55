from scanqueue.dedup import DedupGate


def test_repeat_within_cooldown_is_dropped(clock):
    gate = DedupGate(cooldown_ms=1000, clock=clock)

    assert gate.accept("A") is True
    clock.advance(999)
    assert gate.accept("A") is False


def test_repeat_after_cooldown_is_accepted(clock):
    gate = DedupGate(cooldown_ms=1000, clock=clock)

    gate.accept("A")
    clock.advance(1000)

    assert gate.accept("A") is True


def test_dropped_scan_does_not_extend_the_window(clock):
    gate = DedupGate(cooldown_ms=1000, clock=clock)

    gate.accept("A")
    clock.advance(600)
    gate.accept("A")
    clock.advance(600)

    assert gate.accept("A") is True


def test_different_identifier_is_accepted_immediately(clock):
    gate = DedupGate(cooldown_ms=1000, clock=clock)

    assert gate.accept("A")
    assert gate.accept("B")
    assert gate.accept("A")


def test_reset_forgets_last_scan(clock):
    gate = DedupGate(cooldown_ms=1000, clock=clock)
    gate.accept("A")

    gate.reset()

    assert gate.last_identifier is None
    assert gate.accept("A") is True
