"""
Unit tests for the dispatcher.

Tests verify that events are passed to their listeners in priority order,
that propagation stops when a stoppable event asks for it, that deferred
events are dispatched in the order they were deferred, and that listener
management is forwarded to registries supporting it.
"""

from types import SimpleNamespace

import pytest

import courier
from tests import mocks


def _static_dispatcher(**kwargs) -> courier.Dispatcher:
    registry = courier.StaticRegistry(
        {
            mocks.FirstEvent: [
                mocks.MethodListeners.first,
                mocks.InvokableListener(),
                mocks.plain_listener,
            ],
            mocks.SecondEvent: [mocks.MethodListeners.second],
        }
    )
    return courier.Dispatcher(registry, **kwargs)


# -----Dispatch-----------------------------------------------------------------


def test_dispatch_runs_listeners_in_order() -> None:
    """Test that every listener receives the event, in registry order."""
    dispatcher = _static_dispatcher()
    event = mocks.FirstEvent()

    dispatcher.dispatch(event)

    assert event.result == "First-Second-Third"


def test_dispatch_returns_copy_taken_before_listeners() -> None:
    """Test that the returned event is the state before dispatching."""
    dispatcher = _static_dispatcher()
    event = mocks.FirstEvent()
    event.result = "initial"

    returned = dispatcher.dispatch(event)

    assert returned is not event
    assert isinstance(returned, mocks.FirstEvent)
    assert returned.result == "initial"
    assert event.result == "First-Second-Third"


def test_dispatch_priority_order() -> None:
    """Test that higher priorities run first and ties keep registration order."""
    calls: list[str] = []
    registry = courier.StaticRegistry(
        {
            mocks.FirstEvent: [
                (mocks.make_recorder(calls, "low"), -5),
                mocks.make_recorder(calls, "default_a"),
                (mocks.make_recorder(calls, "high"), 10),
                mocks.make_recorder(calls, "default_b"),
            ]
        }
    )

    courier.Dispatcher(registry).dispatch(mocks.FirstEvent())

    assert calls == ["high", "default_a", "default_b", "low"]


def test_stop_propagation() -> None:
    """Test that listeners after the one stopping propagation are skipped."""
    registry = courier.StaticRegistry(
        {
            mocks.FirstEvent: [
                mocks.MethodListeners.first,
                mocks.InvokableListener(),
                mocks.MethodListeners().stop,
                mocks.plain_listener,
            ]
        }
    )
    event = mocks.FirstEvent()

    courier.Dispatcher(registry).dispatch(event)

    assert event.result == "First-Second-stop"


def test_already_stopped_event() -> None:
    """Test that an event stopped before dispatching reaches no listener."""
    dispatcher = _static_dispatcher()
    event = mocks.FirstEvent()
    event.result = "stop"

    returned = dispatcher.dispatch(event)

    assert event.result == "stop"
    assert returned.result == "stop"


def test_non_stoppable_event() -> None:
    """Test that events without is_propagation_stopped() reach every listener."""
    assert not isinstance(mocks.SecondEvent(), courier.StoppableEvent)
    assert isinstance(mocks.FirstEvent(), courier.StoppableEvent)

    registry = courier.InferringRegistry(
        [mocks.SecondInvokableListener(), mocks.MethodListeners.either]
    )
    event = mocks.SecondEvent()

    courier.Dispatcher(registry).dispatch(event)

    assert event.result == "-Invoked-Either"


def test_dispatch_without_listeners() -> None:
    """Test that unknown events and empty listener lists raise NoListenersError."""
    dispatcher = _static_dispatcher()

    with pytest.raises(courier.NoListenersError):
        dispatcher.dispatch(mocks.UnregisteredEvent())

    empty = courier.Dispatcher(courier.StaticRegistry({mocks.FirstEvent: []}))
    event = mocks.FirstEvent()

    with pytest.raises(courier.NoListenersError, match="No listeners are defined"):
        empty.dispatch(event)


def test_dispatch_with_external_registry() -> None:
    """Test that listener classes are resolved when the event is dispatched."""
    resolver = courier.SimpleResolver(
        {
            "events_to_listeners": [
                {mocks.FirstEvent: ["tests.mocks.InvokableListener"]},
                mocks.EitherInvokableListener,
            ]
        }
    )
    dispatcher = courier.Dispatcher(courier.ExternalRegistry(resolver))

    first = mocks.FirstEvent()
    second = mocks.SecondEvent()
    dispatcher.dispatch(first)
    dispatcher.dispatch(second)

    assert first.result == "-Second-Either"
    assert second.result == "-Either"


def test_dispatch_to_namespace_listener() -> None:
    """Test that events of library classes can be listened to."""
    dispatcher = courier.Dispatcher(
        courier.InferringRegistry([mocks.NamespaceListener()])
    )
    event = SimpleNamespace(seen=False)

    returned = dispatcher.dispatch(event)

    assert event.seen is True
    assert returned.seen is False


def test_provider_property() -> None:
    registry = courier.InferringRegistry()
    dispatcher = courier.Dispatcher(registry)

    assert dispatcher.provider is registry


# -----Deferred Events----------------------------------------------------------


def test_deferred_events() -> None:
    """Test that deferred events are dispatched together, in order, once."""
    registry = courier.StaticRegistry(
        {
            mocks.FirstEvent: [mocks.InvokableListener(), mocks.plain_listener],
            mocks.SecondEvent: [mocks.MethodListeners.second],
        }
    )
    dispatcher = courier.Dispatcher(registry)
    first = mocks.FirstEvent()
    second = mocks.SecondEvent()

    dispatcher.defer(first)
    dispatcher.defer(second)

    assert dispatcher.deferred_events == (first, second)
    assert first.result == ""

    dispatcher.dispatch_deferred_events()

    assert first.result == "-Second-Third"
    assert second.result == "Test"
    assert dispatcher.deferred_events == ()

    with pytest.raises(courier.NoDeferredEventsError):
        dispatcher.dispatch_deferred_events()


def test_deferred_events_fifo_order() -> None:
    """Test that deferred events are dispatched in the order they were deferred."""
    calls: list[str] = []

    def record(event: SimpleNamespace) -> None:
        calls.append(event.name)

    dispatcher = courier.Dispatcher(courier.InferringRegistry([record]))
    for name in ("a", "b", "c"):
        dispatcher.defer(SimpleNamespace(name=name))

    dispatcher.dispatch_deferred_events()

    assert calls == ["a", "b", "c"]


def test_empty_deferred_queue() -> None:
    """Test both policies for dispatching an empty queue."""
    with pytest.raises(courier.NoDeferredEventsError, match="no deferred events"):
        _static_dispatcher().dispatch_deferred_events()

    lenient = _static_dispatcher(strict_deferred=False)
    assert lenient.dispatch_deferred_events() is None


def test_deferred_error_keeps_queue() -> None:
    """Test that a failing deferred dispatch leaves the queue untouched."""
    dispatcher = _static_dispatcher()
    dispatcher.defer(mocks.FirstEvent())
    dispatcher.defer(mocks.UnregisteredEvent())

    with pytest.raises(courier.NoListenersError):
        dispatcher.dispatch_deferred_events()

    assert len(dispatcher.deferred_events) == 2


def test_events_deferred_while_dispatching_wait_for_next_call() -> None:
    """Test that a drain only dispatches the events queued when it started."""
    calls: list[str] = []

    def redefer(event: SimpleNamespace) -> None:
        calls.append(event.name)
        dispatcher.defer(SimpleNamespace(name=f"{event.name}+"))

    dispatcher = courier.Dispatcher(courier.InferringRegistry([redefer]))
    dispatcher.defer(SimpleNamespace(name="a"))

    dispatcher.dispatch_deferred_events()

    assert calls == ["a"]
    assert [event.name for event in dispatcher.deferred_events] == ["a+"]

    dispatcher.dispatch_deferred_events()

    assert calls == ["a", "a+"]
    assert [event.name for event in dispatcher.deferred_events] == ["a++"]


def test_clear_deferred_events_while_dispatching() -> None:
    """Test that events deferred after a clear during a drain are kept."""

    def reset(event: SimpleNamespace) -> None:
        dispatcher.clear_deferred_events()
        dispatcher.defer(SimpleNamespace(name="late"))

    dispatcher = courier.Dispatcher(courier.InferringRegistry([reset]))
    dispatcher.defer(SimpleNamespace(name="a"))
    dispatcher.defer(SimpleNamespace(name="b"))

    dispatcher.dispatch_deferred_events()

    assert [event.name for event in dispatcher.deferred_events] == ["late"]


def test_clear_deferred_events() -> None:
    dispatcher = _static_dispatcher()
    event = mocks.FirstEvent()
    dispatcher.defer(event)

    dispatcher.clear_deferred_events()

    assert dispatcher.deferred_events == ()
    assert event.result == ""


# -----Listener Management------------------------------------------------------


def test_on_and_off_methods() -> None:
    """Test that on() and off() are forwarded to subscribing registries."""
    dispatcher = courier.Dispatcher(courier.StaticRegistry())

    dispatcher.on(mocks.FirstEvent, mocks.InvokableListener())
    dispatcher.on("tests.mocks.FirstEvent", mocks.MethodListeners.first, 5)
    dispatcher.on(mocks.FirstEvent, mocks.plain_listener, priority=-1)

    event = mocks.FirstEvent()
    dispatcher.dispatch(event)
    assert event.result == "First-Second-Third"

    dispatcher.off(mocks.FirstEvent, mocks.InvokableListener())
    dispatcher.off("tests.mocks.FirstEvent", mocks.plain_listener)

    event = mocks.FirstEvent()
    dispatcher.dispatch(event)
    assert event.result == "First"


def test_on_with_nonexistent_event() -> None:
    """Test that event types must name existing classes."""
    dispatcher = courier.Dispatcher(courier.StaticRegistry())

    with pytest.raises(courier.ClassNotFoundError, match="NonExistentEvent"):
        dispatcher.on("NonExistentEvent", mocks.plain_listener)

    with pytest.raises(courier.ClassNotFoundError):
        dispatcher.off("tests.mocks.NonExistentEvent", mocks.plain_listener)


def test_add_and_remove_methods() -> None:
    """Test that add() and remove() are forwarded to inferring registries."""
    dispatcher = courier.Dispatcher(courier.InferringRegistry())

    dispatcher.add(mocks.plain_listener)
    dispatcher.add(mocks.MethodListeners.first, 1)

    event = mocks.FirstEvent()
    dispatcher.dispatch(event)
    assert event.result == "First-Third"

    dispatcher.remove(mocks.plain_listener)

    event = mocks.FirstEvent()
    dispatcher.dispatch(event)
    assert event.result == "First"


def test_unsupported_operations() -> None:
    """Test that registries without a capability refuse the passthrough."""
    inferring = courier.Dispatcher(courier.InferringRegistry())
    static = courier.Dispatcher(courier.StaticRegistry())
    external = courier.Dispatcher(
        courier.ExternalRegistry(
            courier.SimpleResolver({"events_to_listeners": {}})
        )
    )

    with pytest.raises(courier.UnsupportedOperationError, match="'on' method"):
        inferring.on(mocks.FirstEvent, mocks.plain_listener)

    with pytest.raises(courier.UnsupportedOperationError, match="'off' method"):
        inferring.off(mocks.FirstEvent, mocks.plain_listener)

    with pytest.raises(courier.UnsupportedOperationError, match="'add' method"):
        static.add(mocks.plain_listener)

    with pytest.raises(courier.UnsupportedOperationError, match="'remove' method"):
        static.remove(mocks.plain_listener)

    with pytest.raises(courier.UnsupportedOperationError, match="ExternalRegistry"):
        external.on(mocks.FirstEvent, mocks.plain_listener)

    with pytest.raises(courier.UnsupportedOperationError):
        external.add(mocks.plain_listener)


def test_registry_capabilities() -> None:
    """Test the capabilities each registry advertises."""
    static = courier.StaticRegistry()
    inferring = courier.InferringRegistry()

    assert isinstance(static, courier.SubscribingProvider)
    assert not isinstance(static, courier.InferringProvider)
    assert isinstance(inferring, courier.InferringProvider)
    assert not isinstance(inferring, courier.SubscribingProvider)
    assert isinstance(inferring, courier.ListenerProvider)


def test_custom_provider() -> None:
    """Test that any object with get_listeners_for_event() can be dispatched to."""

    class OnlyPlain(object):
        def get_listeners_for_event(self, event: object) -> list:
            return [courier.Listener(mocks.plain_listener)]

    dispatcher = courier.Dispatcher(OnlyPlain())
    event = mocks.FirstEvent()

    dispatcher.dispatch(event)

    assert event.result == "-Third"

    with pytest.raises(courier.UnsupportedOperationError, match="to_dict"):
        dispatcher.to_dict()
