"""Tests for effect(), ReactiveEffect and the active-effect stack."""

import pytest

from trackfx import active_effect, cleanup, effect, reactive


class TestEffect:
    def test_runs_immediately(self):
        info = reactive({"name": "Crocodile", "age": 24})
        log = []
        effect(lambda: log.append(info["age"] + 20))
        assert log == [44]

    def test_reruns_on_change(self):
        info = reactive({"name": "Crocodile", "age": 24})
        log = []
        effect(lambda: log.append(info["age"] + 20))
        info["age"] = 25
        assert log == [44, 45]

    def test_once_per_write(self):
        state = reactive({"k": 0})
        runs = []
        effect(lambda: runs.append(state["k"]))
        state["k"] = 1
        state["k"] = 2
        state["k"] = 3
        assert runs == [0, 1, 2, 3]

    def test_unread_key_does_not_rerun(self):
        state = reactive({"a": 1, "b": 2})
        runs = []
        effect(lambda: runs.append(state["a"]))
        state["b"] = 3
        assert runs == [1]

    def test_same_value_does_not_rerun(self):
        state = reactive({"a": 1})
        runs = []
        effect(lambda: runs.append(state["a"]))
        state["a"] = 1
        assert runs == [1]

    def test_decorator(self):
        state = reactive({"count": 0})
        log = []

        @effect
        def show():
            log.append(state["count"])

        state["count"] = 1
        assert log == [0, 1]
        assert show() is None  # handle re-runs on call
        assert log == [0, 1, 1]

    def test_handle_returns_result(self):
        state = reactive({"n": 2})
        runner = effect(lambda: state["n"] * 10)
        assert runner() == 20


class TestLazy:
    def test_lazy_does_not_run(self):
        calls = []
        runner = effect(lambda: calls.append(1), lazy=True)
        assert calls == []
        runner()
        assert calls == [1]

    def test_lazy_tracks_once_called(self):
        state = reactive({"n": 1})
        log = []
        runner = effect(lambda: log.append(state["n"]), lazy=True)
        state["n"] = 2
        assert log == []  # nothing tracked yet
        runner()
        state["n"] = 3
        assert log == [2, 3]


class TestScheduler:
    def test_scheduler_replaces_rerun(self):
        state = reactive({"n": 1})
        runs = []
        scheduled = []
        runner = effect(lambda: runs.append(state["n"]), scheduler=scheduled.append)
        state["n"] = 2
        assert runs == [1]
        assert scheduled == [runner]
        runner()
        assert runs == [1, 2]

    def test_scheduled_effect_loses_deps_until_rerun(self):
        state = reactive({"n": 1})
        scheduled = []
        runner = effect(lambda: state["n"], scheduler=scheduled.append)
        state["n"] = 2
        state["n"] = 3
        assert scheduled == [runner]  # second write finds no subscriber
        runner()
        state["n"] = 4
        assert scheduled == [runner, runner]


class TestBranchPruning:
    def test_untaken_branch_is_dropped(self):
        state = reactive({"cond": True, "a": 1, "b": 2})
        runs = []
        effect(lambda: runs.append(state["a"] if state["cond"] else state["b"]))
        state["cond"] = False
        assert runs == [1, 2]
        state["a"] = 10
        assert runs == [1, 2]  # a is no longer read
        state["b"] = 20
        assert runs == [1, 2, 20]

    def test_plain_flag_branch(self):
        show = [True]
        info = reactive({"age": 24})
        calls = []

        def get_age():
            calls.append(1)
            return info["age"] if show[0] else "?"

        effect(get_age)
        info["age"] += 1
        assert len(calls) == 2
        show[0] = False
        info["age"] += 1
        assert len(calls) == 3
        info["age"] += 1
        assert len(calls) == 3


class TestNesting:
    def test_nested_effects(self):
        nums = reactive({"num1": 0, "num2": 1, "num3": 2})
        dummy = {}
        parent_calls = []
        child_calls = []

        def child():
            child_calls.append(1)
            dummy["num1"] = nums["num1"]

        def parent():
            parent_calls.append(1)
            dummy["num2"] = nums["num2"]
            effect(child)
            dummy["num3"] = nums["num3"]

        effect(parent)
        assert dummy == {"num1": 0, "num2": 1, "num3": 2}
        assert (len(parent_calls), len(child_calls)) == (1, 1)

        # Only the child reads num1.
        nums["num1"] = 4
        assert dummy == {"num1": 4, "num2": 1, "num3": 2}
        assert (len(parent_calls), len(child_calls)) == (1, 2)

        # num2 is read before the child runs, num3 after it returns.
        nums["num2"] = 10
        assert dummy == {"num1": 4, "num2": 10, "num3": 2}
        assert (len(parent_calls), len(child_calls)) == (2, 3)

        nums["num3"] = 7
        assert dummy == {"num1": 4, "num2": 10, "num3": 7}
        assert (len(parent_calls), len(child_calls)) == (3, 4)

    def test_stack_top_during_nested_run(self):
        seen = []

        def inner():
            seen.append(("inner", active_effect()))

        def outer():
            seen.append(("outer-before", active_effect()))
            inner_runner = effect(inner)
            seen.append(("inner-handle", inner_runner))
            seen.append(("outer-after", active_effect()))

        outer_runner = effect(outer)
        (_, before), (_, inner_top), (_, inner_runner), (_, after) = seen
        assert before is outer_runner
        assert inner_top is inner_runner
        assert after is outer_runner
        assert active_effect() is None


class TestSelfTrigger:
    def test_increment_inside_effect(self):
        info = reactive({"age": 24})
        calls = []

        def year_pass():
            calls.append(1)
            info["age"] += 1

        effect(year_pass)
        assert len(calls) == 1
        assert info["age"] == 25

    def test_once_per_external_trigger(self):
        state = reactive({"n": 0, "bump": 0})
        calls = []

        def fn():
            calls.append(1)
            state["bump"]
            state["n"] = state["n"] + 1

        effect(fn)
        state["bump"] = 1
        assert len(calls) == 2
        assert state["n"] == 2


class TestErrors:
    def test_error_propagates_and_stack_unwinds(self):
        state = reactive({"n": 1})

        def boom():
            if state["n"] > 1:
                raise ValueError("boom")

        effect(boom)
        with pytest.raises(ValueError, match="boom"):
            state["n"] = 2
        assert active_effect() is None

    def test_later_effect_unaffected(self):
        state = reactive({"n": 1, "m": 1})

        def boom():
            raise RuntimeError("nope")

        with pytest.raises(RuntimeError):
            effect(boom)
        log = []
        effect(lambda: log.append(state["m"]))
        state["m"] = 2
        assert log == [1, 2]


class TestDispose:
    def test_dispose_stops(self):
        state = reactive({"n": 1})
        log = []
        runner = effect(lambda: log.append(state["n"]))
        runner.dispose()
        state["n"] = 2
        assert log == [1]
        assert not runner.active

    def test_cleanup_clears_membership(self):
        state = reactive({"n": 1})
        log = []
        runner = effect(lambda: log.append(state["n"]))
        assert len(runner.deps) == 1
        cleanup(runner)
        assert runner.deps == set()
        state["n"] = 2
        assert log == [1]

    def test_repr(self):
        def named():
            pass

        assert "named" in repr(effect(named))
