"""
Test lifecycle event dispatching and vetoes.
"""

from starrecord import EventDispatcher, LifecycleEvent, ModelEvent

from sample_models import Widget


def test_listeners_run_by_priority_then_registration_order():
    dispatcher = EventDispatcher()
    calls = []

    dispatcher.add_listener(LifecycleEvent.CREATING, lambda event: calls.append("low"), -5)
    dispatcher.add_listener(LifecycleEvent.CREATING, lambda event: calls.append("first"))
    dispatcher.add_listener(LifecycleEvent.CREATING, lambda event: calls.append("high"), 10)
    dispatcher.add_listener(LifecycleEvent.CREATING, lambda event: calls.append("second"))

    event = dispatcher.dispatch(ModelEvent(None, LifecycleEvent.CREATING))

    assert calls == ["high", "first", "second", "low"]
    assert not event.is_propagation_stopped()


def test_stop_propagation_halts_remaining_listeners():
    dispatcher = EventDispatcher()
    calls = []

    def veto(event):
        calls.append("veto")
        event.stop_propagation()

    dispatcher.add_listener(LifecycleEvent.DELETING, veto)
    dispatcher.add_listener(LifecycleEvent.DELETING, lambda event: calls.append("never"))

    event = dispatcher.dispatch(ModelEvent(None, LifecycleEvent.DELETING))

    assert calls == ["veto"]
    assert event.is_propagation_stopped()


def test_returning_false_stops_propagation():
    dispatcher = EventDispatcher()
    dispatcher.add_listener(LifecycleEvent.UPDATING, lambda event: False)

    assert dispatcher.dispatch(ModelEvent(None, LifecycleEvent.UPDATING)).is_propagation_stopped()


def test_remove_listener():
    dispatcher = EventDispatcher()

    def listener(event):
        return False

    dispatcher.add_listener(LifecycleEvent.CREATED, listener)
    assert dispatcher.has_listeners(LifecycleEvent.CREATED)

    dispatcher.remove_listener(LifecycleEvent.CREATED, listener)
    assert not dispatcher.has_listeners()


def test_creating_veto_aborts_before_driver(mock_driver):
    """A vetoed creating event never reaches storage"""
    Widget.creating(lambda event: False)

    widget = Widget({"name": "Bolt"})
    assert not widget.create()
    assert not widget.persisted()
    mock_driver.create_model.assert_not_called()


def test_created_veto_reports_failure_after_write(mock_driver):
    """A vetoed created event still leaves the record written"""
    Widget.created(lambda event: event.stop_propagation())

    widget = Widget()
    assert not widget.create({"name": "Bolt"})
    mock_driver.create_model.assert_called_once()
    assert widget.persisted()


def test_updating_veto(mock_driver):
    Widget.updating(lambda event: False)

    widget = Widget.hydrate({"id": 1, "name": "Bolt"})
    widget.name = "Nut"

    assert not widget.set()
    mock_driver.update_model.assert_not_called()


def test_updated_veto_reports_failure_after_write(mock_driver):
    Widget.updated(lambda event: event.stop_propagation())

    widget = Widget.hydrate({"id": 1, "name": "Bolt"})
    widget.name = "Nut"

    assert not widget.set()
    mock_driver.update_model.assert_called_once_with(widget, {"name": "Nut"})


def test_reads_inside_created_listener_load_from_storage(mock_driver):
    """Local values are dropped before created fires, so reads go back to storage"""
    mock_driver.get_created_id.return_value = 3
    mock_driver.load_model.return_value = {"id": 3, "name": "Stored bolt", "sku": "A1"}
    seen = []
    Widget.created(lambda event: seen.append(event.model.name))

    widget = Widget()
    assert widget.create({"name": "Bolt", "sku": "A1"})

    assert seen == ["Stored bolt"]
    mock_driver.load_model.assert_called_once_with(widget)


def test_deleting_and_deleted(mock_driver):
    widget = Widget.build_from_id(4)
    Widget.deleting(lambda event: False)

    assert not widget.delete()
    mock_driver.delete_model.assert_not_called()
    assert widget.persisted()


def test_deleted_veto_still_deletes(mock_driver):
    Widget.deleted(lambda event: False)
    widget = Widget.build_from_id(4)

    assert not widget.delete()
    mock_driver.delete_model.assert_called_once_with(widget)
    assert not widget.persisted()


def test_saving_listens_to_create_and_update(mock_driver):
    seen = []
    Widget.saving(lambda event: seen.append(event.name))
    Widget.saved(lambda event: seen.append(event.name))

    widget = Widget()
    assert widget.create({"name": "Bolt"})
    widget.name = "Nut"
    assert widget.set()

    assert seen == [
        LifecycleEvent.CREATING, LifecycleEvent.CREATED,
        LifecycleEvent.UPDATING, LifecycleEvent.UPDATED,
    ]


def test_listener_can_stage_values(mock_driver):
    def stamp(event):
        event.model.sku = "GEN-1"

    Widget.creating(stamp)

    widget = Widget({"name": "Bolt"})
    assert widget.create()
    mock_driver.create_model.assert_called_once_with(widget, {"name": "Bolt", "sku": "GEN-1"})


def test_listeners_are_per_model_type(mock_driver):
    from sample_models import Balance

    Widget.creating(lambda event: False)

    assert Balance({"amount": 5}).create()
    assert not Widget({"name": "Bolt"}).create()
