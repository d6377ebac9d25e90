import threading

from distref.reference import ProcessContext, ReferenceSlot
from distref.reference.process_context import CONTROLLER_ID

from tests.resources import StoppableServer


class TestReferenceSlotValue:
    def test_new_slot_is_empty(self):
        slot = ReferenceSlot()

        assert slot.get() is None
        assert slot.empty is True

    def test_set_returns_slot_for_chaining(self):
        slot = ReferenceSlot()
        server = StoppableServer()

        assert slot.set(server) is slot
        assert slot.get() is server
        assert slot.empty is False

    def test_get_has_no_side_effects(self):
        slot = ReferenceSlot()
        server = StoppableServer()
        slot.set(server)

        assert slot.get() is server
        assert slot.get() is server
        assert server.calls == []

    def test_overwrite_does_not_release_previous_value(self):
        slot = ReferenceSlot()
        first = StoppableServer(name="first")
        second = StoppableServer(name="second")

        slot.set(first).set(second)

        assert slot.get() is second
        assert first.calls == []

    def test_take_returns_value_and_clears(self):
        slot = ReferenceSlot()
        server = StoppableServer()
        slot.set(server)

        assert slot.take() is server
        assert slot.get() is None
        assert slot.take() is None


class TestReferenceSlotAutoClose:
    def test_auto_close_defaults_to_enabled(self):
        assert ReferenceSlot().auto_close is True

    def test_configure_auto_close_returns_slot(self):
        slot = ReferenceSlot()

        assert slot.configure_auto_close(False) is slot
        assert slot.auto_close is False

        slot.configure_auto_close(True)
        assert slot.auto_close is True

    def test_initial_auto_close(self):
        assert ReferenceSlot(auto_close=False).auto_close is False


class TestReferenceSlotConcurrency:
    def test_concurrent_take_yields_value_once(self):
        slot = ReferenceSlot()
        slot.set(StoppableServer())

        taken = []
        barrier = threading.Barrier(8)

        def take():
            barrier.wait()
            value = slot.take()
            if value is not None:
                taken.append(value)

        threads = [threading.Thread(target=take) for _ in range(8)]
        for thread in threads:
            thread.start()

        for thread in threads:
            thread.join()

        assert len(taken) == 1
        assert slot.get() is None

    def test_concurrent_set_keeps_one_of_the_written_values(self):
        slot = ReferenceSlot()
        written = [StoppableServer(name=f"server-{idx}") for idx in range(16)]

        threads = [
            threading.Thread(target=slot.set, args=(server,)) for server in written
        ]
        for thread in threads:
            thread.start()

        for thread in threads:
            thread.join()

        assert slot.get() in written


class TestProcessContext:
    def test_default_context_is_controller(self):
        context = ProcessContext()

        assert context.worker_id == CONTROLLER_ID
        assert context.is_controller is True

    def test_slot_is_created_once_per_reference(self):
        context = ProcessContext(worker_id=3)

        first = context.slot("reference-a")
        again = context.slot("reference-a", auto_close=False)
        other = context.slot("reference-b")

        assert first is again
        assert first is not other
        assert first.auto_close is True
        assert context.is_controller is False

    def test_new_slot_uses_given_auto_close(self):
        context = ProcessContext()

        assert context.slot("reference", auto_close=False).auto_close is False

    def test_discard_removes_slot(self):
        context = ProcessContext()
        context.slot("reference").set(StoppableServer())

        context.discard("reference")

        assert context.reference_ids() == []
        assert context.slot("reference").get() is None
