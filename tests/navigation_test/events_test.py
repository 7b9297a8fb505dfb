from rover_nav.navigation.events import NAV_END, NavigationEvents


def test_emit_reaches_subscribers_once():
    events = NavigationEvents()
    calls = []

    def listener(**payload):
        calls.append(payload)

    events.subscribe(NAV_END, listener)
    events.subscribe(NAV_END, listener)
    assert events.emit(NAV_END, steps=2) == 1
    assert calls == [{"steps": 2}]

    events.unsubscribe(NAV_END, listener)
    assert events.emit(NAV_END) == 0


def test_failing_listener_does_not_block_others():
    events = NavigationEvents()
    calls = []

    def broken(**_):
        raise RuntimeError("ui gone")

    events.subscribe("navigation:step", broken)
    events.subscribe("navigation:step", lambda **p: calls.append(p["index"]))
    assert events.emit("navigation:step", index=0) == 1
    assert calls == [0]
