from restaurant_api.events import NEW_ORDER, ORDER_STATUS_UPDATE, EventBus, order_room


def test_broadcast_reaches_every_subscriber():
    bus = EventBus()
    a, b = [], []
    bus.subscribe(a.append)
    bus.subscribe(b.append)
    assert bus.emit_new_order({"orderId": 1}) == 2
    assert a[0].to_dict() == {"event": NEW_ORDER, "data": {"orderId": 1}}
    assert len(b) == 1


def test_room_events_only_reach_members():
    bus = EventBus()
    member, outsider = [], []
    sub = bus.subscribe(member.append)
    bus.subscribe(outsider.append)
    sub.join(order_room(5))

    assert bus.emit_order_status_update(5, "processing") == 1
    assert member[0].event_type == ORDER_STATUS_UPDATE
    assert member[0].data == {"orderId": 5, "status": "processing"}
    assert outsider == []

    sub.leave(order_room(5))
    assert bus.emit_order_status_update(5, "completed") == 0


def test_failing_subscriber_is_skipped():
    bus = EventBus()
    seen = []

    def broken(event):
        raise RuntimeError("gone")

    bus.subscribe(broken)
    bus.subscribe(seen.append)
    assert bus.publish("custom", {"x": 1}) == 1
    assert len(seen) == 1


def test_unsubscribe():
    bus = EventBus()
    seen = []
    sub = bus.subscribe(seen.append)
    assert bus.subscriber_count() == 1
    bus.unsubscribe(sub)
    assert bus.subscriber_count() == 0
    bus.emit_new_order({"orderId": 2})
    assert seen == []


def test_room_name():
    assert order_room(42) == "order_42"
