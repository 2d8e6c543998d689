# tests/test_events.py
from core.events import Signal


def test_every_receiver_gets_the_sender_and_payload():
    seen = []
    sig = Signal("demo")
    sig.connect(lambda sender, value: seen.append(("a", sender, value)))
    sig.connect(lambda sender, value: seen.append(("b", sender, value)))
    assert sig.send("store", value=1) == 2
    assert sorted(seen) == [("a", "store", 1), ("b", "store", 1)]


def test_connect_is_idempotent_and_disconnect_stops_delivery():
    seen = []

    def receiver(sender, **kwargs):
        seen.append(kwargs)

    sig = Signal("demo")
    sig.connect(receiver)
    sig.connect(receiver)
    assert len(sig.receivers) == 1
    sig.disconnect(receiver)
    assert sig.send("store", value="x") == 0
    assert seen == []


def test_lambdas_stay_connected_without_an_outside_reference():
    seen = []
    sig = Signal("demo")
    sig.connect(lambda sender, **kw: seen.append(kw))
    sig.send(None, user=None)
    assert seen == [{"user": None}]


def test_failing_receiver_does_not_stop_others():
    seen = []

    def boom(sender, **kwargs):
        raise RuntimeError("receiver bug")

    def record(sender, **kwargs):
        seen.append(kwargs["user"])

    sig = Signal("demo")
    sig.connect(boom)
    sig.connect(record)
    assert sig.send("store", user="ok") == 1
    assert seen == ["ok"]
