"""
Resolution Engine Unit Tests

Tests for the firing algorithm: pass-through, value chaining, thenable
adoption, finally adoption, exception classification, cascade order
and bounded stack depth on long chains
"""

import sys

import pytest

from promise_mock import ChainingCycleError, PromiseMock


class ForeignThenable:
    """Thenable from another library: stores callbacks, settles on demand"""

    def __init__(self):
        self.callbacks = []

    def then(self, on_fulfilled=None, on_rejected=None):
        self.callbacks.append((on_fulfilled, on_rejected))

    def fulfill(self, value):
        for on_fulfilled, _ in self.callbacks:
            on_fulfilled(value)

    def reject(self, reason):
        for _, on_rejected in self.callbacks:
            on_rejected(reason)


class BrokenThenable:
    def __init__(self, error):
        self.error = error

    def then(self, on_fulfilled=None, on_rejected=None):
        raise self.error


class SyncThenable:
    """Thenable that reports its value as soon as it is subscribed to"""

    def __init__(self, value):
        self.value = value

    def then(self, on_fulfilled=None, on_rejected=None):
        on_fulfilled(self.value)


class FinallyBox:
    """Finally-bearing object that runs its callback immediately"""

    def finally_(self, callback):
        callback()


class TestPassThrough:
    """Tests for outcome propagation through unmatched branches"""

    def test_rejection_skips_then_and_reaches_catch(self, promise):
        """Test then(f).catch(g) on rejection calls g and never f"""
        error = ValueError("E")
        fulfilled, caught = [], []

        promise.then(fulfilled.append).catch(caught.append)
        promise.reject(error)

        assert fulfilled == []
        assert caught == [error]

    def test_rejection_skips_several_steps(self, promise):
        """Test a rejection travels through a chain of then steps"""
        error = ValueError()
        caught = []

        promise.then(lambda v: v + 1).then(lambda v: v * 2).then(str).catch(caught.append)
        promise.reject(error)

        assert caught == [error]

    def test_value_skips_rejection_only_steps(self, promise):
        """Test a value travels past then(None, handler) steps"""
        received = []

        promise.then(None, lambda e: "unused").then(received.append)
        promise.resolve(7)

        assert received == [7]


class TestValueChaining:
    """Tests for chaining plain return values"""

    def test_value_chaining(self, promise):
        """Test then(x + 1).then(record) records 6 after resolve(5)"""
        recorded = []

        promise.then(lambda x: x + 1).then(recorded.append)
        promise.resolve(5)

        assert recorded == [6]

    def test_handler_error_becomes_rejection(self, promise):
        """Test an exception in a handler rejects the next step"""
        error = ZeroDivisionError()
        caught = []

        def divide(x):
            raise error

        promise.then(divide).then(lambda v: "unreached").catch(caught.append)
        promise.resolve(1)

        assert caught == [error]

    def test_recovery_continues_chain(self, promise):
        """Test a catch handler's return value resumes the fulfilled branch"""
        received = []

        promise.catch(lambda e: "fallback").then(received.append)
        promise.reject(ValueError())

        assert received == ["fallback"]


class TestThenableAdoption:
    """Tests for handlers returning thenables"""

    def test_child_waits_for_returned_promise(self, promise):
        """Test the child stays pending until the returned promise settles"""
        inner = PromiseMock()
        child = promise.then(lambda v: inner)

        promise.resolve(1)
        assert child.is_pending()

        inner.resolve("inner value")
        assert child.is_fulfilled()
        assert child.value == "inner value"

    def test_child_adopts_returned_rejection(self, promise):
        """Test the child adopts the returned promise's rejection verbatim"""
        inner = PromiseMock()
        error = ValueError("inner")
        child = promise.then(lambda v: inner)

        promise.resolve(1)
        inner.reject(error)

        assert child.reason is error

    def test_already_settled_returned_promise(self, promise):
        """Test an already fulfilled returned promise settles the child at once"""
        child = promise.then(lambda v: PromiseMock.resolve(v * 10))

        promise.resolve(4)

        assert child.value == 40

    def test_adoption_from_catch(self, promise):
        """Test catch handlers may return promises too"""
        inner = PromiseMock()
        child = promise.catch(lambda e: inner)

        promise.reject(ValueError())
        inner.resolve("recovered later")

        assert child.value == "recovered later"

    def test_adopted_value_is_not_unwrapped_again(self, promise):
        """Test a thenable stored as a value is adopted verbatim"""
        nested = PromiseMock()
        inner = PromiseMock.resolve(nested)

        child = promise.then(lambda v: inner)
        promise.resolve(None)

        assert child.value is nested

    def test_foreign_thenable(self, promise):
        """Test any object with a then method is adopted"""
        foreign = ForeignThenable()
        child = promise.then(lambda v: foreign)

        promise.resolve(1)
        assert child.is_pending()
        assert len(foreign.callbacks) == 1

        foreign.fulfill("foreign value")
        assert child.value == "foreign value"

    def test_foreign_thenable_first_signal_wins(self, promise):
        """Test later signals from a misbehaving thenable are ignored"""
        foreign = ForeignThenable()
        child = promise.then(lambda v: foreign)
        promise.resolve(1)

        foreign.reject(ValueError("first"))
        foreign.fulfill("second")

        assert child.is_rejected()
        assert str(child.reason) == "first"

    def test_foreign_then_raising_rejects_child(self, promise):
        """Test an exception from a thenable's then rejects the child"""
        error = RuntimeError("then failed")
        child = promise.then(lambda v: BrokenThenable(error))

        promise.resolve(1)

        assert child.reason is error

    def test_then_raising_after_signal_propagates(self, promise):
        """Test an error from then() is not lost once the child has settled"""

        class SignalThenFail:
            def then(self, on_fulfilled=None, on_rejected=None):
                on_fulfilled("delivered")
                raise RuntimeError("after signal")

        child = promise.then(lambda v: SignalThenFail())

        with pytest.raises(RuntimeError, match="after signal"):
            promise.resolve(1)

        assert child.value == "delivered"

    def test_synchronous_thenable(self, promise):
        """Test a thenable that signals during subscription settles the child"""
        recorded = []
        promise.then(lambda v: SyncThenable(v * 10)).then(recorded.append)

        promise.resolve(4)

        assert recorded == [40]

    def test_returning_own_child_is_rejected(self, promise):
        """Test a handler returning its own child rejects it with a cycle error"""
        holder = []
        child = promise.then(lambda v: holder[0])
        holder.append(child)

        promise.resolve(1)

        assert child.is_rejected()
        assert isinstance(child.reason, ChainingCycleError)
        assert isinstance(child.reason, TypeError)


class TestFinallyAdoption:
    """Tests for the outcome of finally_ children"""

    def test_finally_return_value_is_discarded(self, promise):
        """Test finally_(ignored).success(record) records the original value"""
        recorded = []

        promise.finally_(lambda: "ignored").success(recorded.append)
        promise.resolve("x")

        assert recorded == ["x"]

    def test_finally_keeps_rejection(self, promise):
        """Test the finally child is rejected with the original reason"""
        error = ValueError()
        child = promise.finally_(lambda: "ignored")

        promise.reject(error)

        assert child.reason is error

    def test_finally_waits_for_returned_promise(self, promise):
        """Test returning a finally-bearing object defers the child"""
        gate = PromiseMock()
        child = promise.finally_(lambda: gate)

        promise.resolve("original")
        assert child.is_pending()

        gate.resolve("gate value")
        assert child.value == "original"

    def test_finally_adopts_original_even_if_returned_rejects(self, promise):
        """Test the deferred child still adopts the parent's outcome"""
        gate = PromiseMock()
        child = promise.finally_(lambda: gate)

        promise.resolve("original")
        gate.reject(ValueError("gate failed"))

        assert child.is_fulfilled()
        assert child.value == "original"

    def test_finally_with_foreign_finally_member(self, promise):
        """Test an object exposing a plain finally member is honoured"""

        class Cleanup:
            def __init__(self):
                self.callbacks = []

            def done(self):
                for callback in self.callbacks:
                    callback()

        setattr(Cleanup, "finally", lambda self, cb: self.callbacks.append(cb))
        cleanup = Cleanup()
        error = KeyError("k")

        child = promise.finally_(lambda: cleanup)
        promise.reject(error)
        assert child.is_pending()

        cleanup.done()
        assert child.reason is error

    def test_finally_with_settled_promise(self, promise):
        """Test returning an already settled promise releases the child at once"""
        child = promise.finally_(lambda: PromiseMock.reject(ValueError("ignored")))

        promise.resolve("original")

        assert child.value == "original"

    def test_finally_hook_raising_after_release_propagates(self, promise):
        """Test an error from a finally member is not lost once the child settled"""

        class ReleaseThenFail:
            def finally_(self, callback):
                callback()
                raise RuntimeError("after release")

        child = promise.finally_(lambda: ReleaseThenFail())

        with pytest.raises(RuntimeError, match="after release"):
            promise.resolve("original")

        assert child.value == "original"

    def test_finally_handler_error_rejects_child(self, promise):
        """Test an exception inside finally_ rejects its child"""
        error = RuntimeError("cleanup failed")

        def cleanup():
            raise error

        child = promise.finally_(cleanup)
        promise.resolve(1)

        assert child.reason is error

    def test_finally_fires_after_other_continuations(self, promise):
        """Test finally continuations run after the other ones of the same promise"""
        order = []
        promise.finally_(lambda: order.append("finally"))
        promise.success(lambda _: order.append("success"))
        promise.then(lambda _: order.append("then"))

        promise.resolve()

        assert order == ["success", "then", "finally"]


class TestExceptionClassification:
    """Tests for registered exception types escaping handlers"""

    def test_registered_exception_escapes_resolve(self, promise):
        """Test a registered exception propagates out of resolve"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        child = promise.success(lambda v: _fail("inside callback"))

        with pytest.raises(AssertionError, match="inside callback"):
            promise.resolve(1)

        assert promise.is_fulfilled()
        assert child.is_pending()

    def test_registered_exception_escapes_reject(self, promise):
        """Test a registered exception propagates out of reject"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        promise.catch(lambda e: _fail("inside catch"))

        with pytest.raises(AssertionError, match="inside catch"):
            promise.reject(ValueError())

    def test_registered_exception_escapes_registration(self, promise):
        """Test registering on a settled promise propagates the exception"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        promise.resolve(1)

        with pytest.raises(AssertionError):
            promise.success(lambda v: _fail("late"))

    def test_registered_exception_from_finally(self, promise):
        """Test a registered exception from finally_ propagates"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        promise.finally_(lambda: _fail("in finally"))

        with pytest.raises(AssertionError, match="in finally"):
            promise.resolve()

    def test_registered_exception_deep_in_chain(self, promise):
        """Test a registered exception several links down still escapes"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        promise.then(lambda v: v + 1).then(lambda v: v + 1).then(
            lambda v: _fail(f"got {v}")
        )

        with pytest.raises(AssertionError, match="got 2"):
            promise.resolve(0)

    def test_subclass_of_registered_type_escapes(self, promise):
        """Test instances of subclasses of a registered type escape"""

        class CustomAssertion(AssertionError):
            pass

        PromiseMock.set_assertion_exception_types([AssertionError])

        def handler(_):
            raise CustomAssertion("custom")

        promise.success(handler)

        with pytest.raises(CustomAssertion):
            promise.resolve()

    def test_unregistered_exception_is_captured(self, promise):
        """Test unregistered exceptions become rejections"""
        child = promise.success(lambda v: _fail("captured"))

        promise.resolve(1)

        assert isinstance(child.reason, AssertionError)

    def test_registration_is_replaced_wholesale(self, promise):
        """Test setting the types twice keeps only the last list"""
        PromiseMock.set_assertion_exception_types([KeyError])
        PromiseMock.set_assertion_exception_types([ValueError])

        def raise_key_error(_):
            raise KeyError("now captured")

        child = promise.success(raise_key_error)
        promise.resolve()

        assert isinstance(child.reason, KeyError)

    def test_explicit_engine_has_own_registry(self, engine):
        """Test an explicit engine ignores the default registry"""
        engine.classifier.replace([AssertionError])
        isolated = PromiseMock(engine=engine)
        default = PromiseMock()

        isolated.success(lambda v: _fail("isolated"))
        default_child = default.success(lambda v: _fail("default"))

        with pytest.raises(AssertionError, match="isolated"):
            isolated.resolve()

        default.resolve()
        assert isinstance(default_child.reason, AssertionError)


class TestCascadeDepth:
    """Tests for long chains"""

    def test_long_value_chain(self, promise):
        """Test a chain far longer than the recursion limit settles"""
        length = sys.getrecursionlimit() * 3
        tail = promise
        for _ in range(length):
            tail = tail.then(lambda x: x + 1)

        promise.resolve(0)

        assert tail.value == length

    def test_long_pass_through_chain(self, promise):
        """Test a rejection passes through a very long chain"""
        length = sys.getrecursionlimit() * 3
        error = ValueError("deep")
        tail = promise
        for _ in range(length):
            tail = tail.then(lambda x: x)
        caught = tail.catch(lambda e: e)

        promise.reject(error)

        assert caught.value is error

    def test_long_finally_chain(self, promise):
        """Test a long chain of finally_ steps keeps the original value"""
        length = sys.getrecursionlimit() * 3
        tail = promise
        for _ in range(length):
            tail = tail.finally_(lambda: None)

        promise.resolve("end")

        assert tail.value == "end"

    def test_long_synchronous_thenable_chain(self, promise):
        """Test a long chain of thenables that signal immediately settles every link"""
        length = sys.getrecursionlimit() * 3
        cells = [promise]
        for _ in range(length):
            cells.append(cells[-1].then(lambda v: SyncThenable(v + 1)))

        promise.resolve(0)

        assert cells[-1].value == length
        assert all(cell.is_fulfilled() for cell in cells)

    def test_long_finally_box_chain(self, promise):
        """Test a long chain of immediately released finally_ steps settles"""
        length = sys.getrecursionlimit() * 3
        cells = [promise]
        for _ in range(length):
            cells.append(cells[-1].finally_(lambda: FinallyBox()))

        promise.resolve("end")

        assert cells[-1].value == "end"
        assert all(cell.is_fulfilled() for cell in cells)


class TestCascadeOrder:
    """Tests for the order in which continuations of related promises fire"""

    def test_child_continuations_fire_before_next_sibling(self, promise):
        """Test a child's continuations run before its parent's next record"""
        order = []
        promise.then(lambda _: order.append("a")).then(lambda _: order.append("b"))
        promise.then(lambda _: order.append("c"))

        promise.resolve(1)

        assert order == ["a", "b", "c"]

    def test_adopted_settled_promise_cascades_first(self, promise):
        """Test adopting a settled promise fires the child's chain immediately"""
        order = []
        promise.then(lambda _: PromiseMock.resolve("x")).then(order.append)
        promise.then(lambda _: order.append("sibling"))

        promise.resolve(1)

        assert order == ["x", "sibling"]

    def test_child_continuations_run_before_registered_exception(self, promise):
        """Test work cascaded from an earlier record runs before a later one raises"""
        PromiseMock.set_assertion_exception_types([AssertionError])
        seen = []
        child = promise.then(lambda v: v)
        child.then(seen.append)
        promise.then(lambda v: _fail("boom"))

        with pytest.raises(AssertionError, match="boom"):
            promise.resolve(1)

        assert child.is_fulfilled()
        assert seen == [1]


class TestLateChildSettlement:
    """Tests for children settled directly by user code"""

    def test_engine_ignores_already_settled_child(self, promise):
        """Test the engine does not fail when a child was settled manually"""
        child = promise.then(lambda v: "from handler")
        child.resolve("manual")

        promise.resolve(1)

        assert child.value == "manual"


def _fail(message):
    raise AssertionError(message)
