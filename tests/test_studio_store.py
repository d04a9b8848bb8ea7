"""
Atelier Backend — Navigation Store Tests
==========================================

What we test:
    ✅ The walkthrough: enter → explore → focus lash → next → unfocus → exit
    ✅ active_zone is set iff mode == focused, over many random call sequences
    ✅ Transitions are dropped (not queued) while an animation is in flight
    ✅ exit from exploring / focused always lands on landing with no zone
    ✅ next_zone four times returns to the starting zone
    ✅ Escape backs out one level at a time
    ✅ Subscriptions, hover, reset
"""

import random

import pytest

from atelier.exceptions import ValidationError
from atelier.studio.hud import StudioHud
from atelier.studio.store import StudioMode, StudioState, StudioStore
from atelier.studio.zones import ZONE_ORDER, ZoneId


def settle(store: StudioStore) -> None:
    """Finish whatever animation is running."""
    store.complete_transition()


def explore(store: StudioStore) -> None:
    store.enter_studio()
    settle(store)


def focus(store: StudioStore, zone) -> None:
    assert store.focus_zone(zone)
    settle(store)


class TestWalkthrough:
    def test_enter_then_timer_reaches_exploring(self, store):
        assert store.enter_studio()
        assert store.state.mode == StudioMode.ENTERING
        assert store.state.is_transitioning

        assert store.complete_transition()
        assert store.state.mode == StudioMode.EXPLORING
        assert store.state.active_zone is None
        assert not store.state.is_transitioning

    def test_full_tour(self, store):
        explore(store)

        assert store.focus_zone("lash")
        assert store.state.mode == StudioMode.FOCUSED
        assert store.state.active_zone == ZoneId.LASH
        settle(store)

        assert store.next_zone()
        assert store.state.active_zone == ZoneId.JEWELRY
        settle(store)

        assert store.unfocus_zone()
        assert store.state.mode == StudioMode.EXPLORING
        assert store.state.active_zone is None
        settle(store)

        assert store.exit_studio()
        assert store.state.mode == StudioMode.LANDING
        assert store.state.active_zone is None


class TestSourceStates:
    def test_enter_only_from_landing(self, store):
        explore(store)
        assert not store.enter_studio()

    def test_nothing_navigates_from_landing(self, store):
        assert not store.focus_zone(ZoneId.LASH)
        assert not store.next_zone()
        assert not store.prev_zone()
        assert not store.unfocus_zone()
        assert not store.exit_studio()
        assert store.state == StudioState()

    def test_unfocus_requires_focused(self, store):
        explore(store)
        assert not store.unfocus_zone()

    def test_focus_same_zone_is_noop(self, store):
        explore(store)
        focus(store, ZoneId.CROCHET)
        assert not store.focus_zone(ZoneId.CROCHET)

    def test_switch_zones_while_focused(self, store):
        explore(store)
        focus(store, ZoneId.LASH)
        assert store.focus_zone(ZoneId.CONSULTING)
        assert store.state.active_zone == ZoneId.CONSULTING

    def test_next_prev_from_exploring(self, store):
        explore(store)
        assert store.next_zone()
        assert store.state.active_zone == ZoneId.LASH
        settle(store)
        store.unfocus_zone()
        settle(store)
        assert store.prev_zone()
        assert store.state.active_zone == ZoneId.CONSULTING

    def test_unknown_zone_raises(self, store):
        explore(store)
        with pytest.raises(ValidationError):
            store.focus_zone("spa")

    def test_complete_without_transition_is_noop(self, store):
        assert not store.complete_transition()
        explore(store)
        assert not store.complete_transition()


class TestTransitionGuard:
    def test_focus_dropped_while_transitioning(self, store):
        explore(store)
        assert store.focus_zone(ZoneId.LASH)
        before = store.state

        assert not store.focus_zone(ZoneId.JEWELRY)
        assert not store.next_zone()
        assert not store.prev_zone()
        assert not store.unfocus_zone()
        assert not store.exit_studio()
        assert store.state == before

    def test_dropped_not_queued(self, store):
        explore(store)
        store.focus_zone(ZoneId.LASH)
        store.focus_zone(ZoneId.CROCHET)
        settle(store)
        assert store.state.active_zone == ZoneId.LASH
        assert not store.state.is_transitioning

    def test_entering_blocks_navigation(self, store):
        store.enter_studio()
        assert not store.focus_zone(ZoneId.LASH)
        assert not store.exit_studio()
        assert store.state.mode == StudioMode.ENTERING


class TestProperties:
    OPS = ("enter", "focus", "unfocus", "exit", "next", "prev", "complete", "hover")

    def _apply(self, store, rng):
        op = rng.choice(self.OPS)
        if op == "enter":
            store.enter_studio()
        elif op == "focus":
            store.focus_zone(rng.choice(ZONE_ORDER))
        elif op == "unfocus":
            store.unfocus_zone()
        elif op == "exit":
            store.exit_studio()
        elif op == "next":
            store.next_zone()
        elif op == "prev":
            store.prev_zone()
        elif op == "complete":
            store.complete_transition()
        else:
            store.set_hovered_zone(rng.choice((None,) + ZONE_ORDER))

    @pytest.mark.parametrize("seed", range(25))
    def test_active_zone_iff_focused(self, seed):
        rng = random.Random(seed)
        store = StudioStore()
        for _ in range(200):
            self._apply(store, rng)
            state = store.state
            assert (state.active_zone is not None) == (state.mode == StudioMode.FOCUSED)

    @pytest.mark.parametrize("start_zone", [None] + list(ZONE_ORDER))
    def test_exit_always_lands(self, store, start_zone):
        explore(store)
        if start_zone is not None:
            focus(store, start_zone)
        assert store.exit_studio()
        assert store.state.mode == StudioMode.LANDING
        assert store.state.active_zone is None

    @pytest.mark.parametrize("start_zone", ZONE_ORDER)
    def test_next_four_times_is_identity(self, store, start_zone):
        explore(store)
        focus(store, start_zone)
        for _ in range(4):
            assert store.next_zone()
            settle(store)
        assert store.state.active_zone == start_zone

    def test_escape_backs_out_one_level(self, store):
        hud = StudioHud(store)
        explore(store)
        focus(store, ZoneId.JEWELRY)

        hud.dispatch_key("Escape")
        assert store.state.mode == StudioMode.EXPLORING
        assert store.state.active_zone is None
        settle(store)

        hud.dispatch_key("Escape")
        assert store.state.mode == StudioMode.LANDING


class TestSubscriptionAndHover:
    def test_listener_gets_state_and_previous(self, store):
        calls = []
        store.subscribe(lambda state, previous: calls.append((state.mode, previous.mode)))
        store.enter_studio()
        assert calls == [(StudioMode.ENTERING, StudioMode.LANDING)]

    def test_rejected_transition_does_not_notify(self, store):
        calls = []
        store.subscribe(lambda state, previous: calls.append(state))
        store.unfocus_zone()
        assert calls == []

    def test_unsubscribe(self, store):
        calls = []
        unsubscribe = store.subscribe(lambda state, previous: calls.append(state))
        unsubscribe()
        unsubscribe()
        store.enter_studio()
        assert calls == []

    def test_hover_in_any_mode(self, store):
        assert store.set_hovered_zone("lash")
        assert store.state.hovered_zone == ZoneId.LASH
        assert not store.set_hovered_zone(ZoneId.LASH)
        store.enter_studio()
        assert store.set_hovered_zone(None)
        assert store.state.hovered_zone is None

    def test_snapshot_is_immutable(self, store):
        snap = store.snapshot()
        store.enter_studio()
        assert snap.mode == StudioMode.LANDING
        with pytest.raises(Exception):
            snap.mode = StudioMode.FOCUSED

    def test_reset(self, store):
        explore(store)
        focus(store, ZoneId.LASH)
        store.set_hovered_zone(ZoneId.LASH)
        store.reset()
        assert store.state == StudioState()
