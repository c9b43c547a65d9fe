"""
System-level properties of the routing engine, checked over small networks.
"""

import pytest

from routesim.engine.event_bus import EventBus
from routesim.errors import NoRouteError
from routesim.faults.injector import FaultInjector
from routesim.routing.actions import Receive
from routesim.routing.network import Network
from routesim.routing.prefix import Prefix
from routesim.routing.route import Route

AS_A, AS_B, AS_C, AS_D = 65001, 65002, 65003, 65004


@pytest.fixture
def chain():
    """A - B - C - D, plus a shortcut A - D."""
    network = Network(event_bus=EventBus())
    for asn in (AS_A, AS_B, AS_C, AS_D):
        network.add_speaker(asn)
    network.connect(AS_A, AS_B)
    network.connect(AS_B, AS_C)
    network.connect(AS_C, AS_D)
    network.connect(AS_A, AS_D)
    return network


def assert_selection_is_best(network):
    for speaker in network.speakers.values():
        for prefix in speaker.table.prefixes():
            alternates = speaker.table.alternates(prefix)
            best = min(alternates, key=Route.preference_key)
            assert speaker.select(prefix) == best


def assert_loop_free(network):
    for speaker in network.speakers.values():
        for _, route in speaker.dump():
            assert len(route.path) == len(set(route.path))


class TestConvergence:
    def test_every_speaker_learns_every_prefix(self, chain):
        for asn in chain.speakers:
            chain.schedule_advertise(1, asn, f"10.{asn - 65000}.0.0/16")
        assert chain.run(10) == []

        for asn in chain.speakers:
            assert len(chain.dump(asn)) == 4
        assert_selection_is_best(chain)
        assert_loop_free(chain)

    def test_shortest_path_wins(self, chain):
        chain.schedule_advertise(1, AS_C, "10.3.0.0/16")
        chain.run(10)

        # A reaches C in two hops either way; the smaller next hop breaks the tie
        route = chain.select(AS_A, "10.3.0.0/16")
        assert len(route.path) == 2
        assert route.next_hop == AS_B

        assert chain.select(AS_D, "10.3.0.0/16").path == (AS_C,)


class TestLoopPrevention:
    def test_looping_update_is_noop(self, chain):
        chain.schedule_advertise(1, AS_A, "10.1.0.0/16")
        chain.run(5)
        before = {asn: chain.dump(asn) for asn in chain.speakers}
        pending = chain.clock.pending()

        looping = Route(prefix="10.1.0.0/16", path=(AS_A, AS_B), next_hop=AS_B)
        chain.schedule(6, Receive(AS_A, looping, AS_B))
        chain.run(6)

        assert {asn: chain.dump(asn) for asn in chain.speakers} == before
        assert chain.clock.pending() == pending


class TestWithdraw:
    def test_withdraw_reaches_everyone(self, chain):
        chain.schedule_advertise(1, AS_A, "10.1.0.0/16")
        chain.schedule_withdraw(5, AS_A, "10.1.0.0/16")
        assert chain.run(10) == []

        for asn in chain.speakers:
            with pytest.raises(NoRouteError):
                chain.select(asn, "10.1.0.0/16")

    def test_withdraw_twice_same_as_once(self, chain):
        chain.schedule_advertise(1, AS_A, "10.1.0.0/16")
        chain.schedule_advertise(1, AS_B, "10.2.0.0/16")
        chain.schedule_withdraw(5, AS_A, "10.1.0.0/16")
        chain.run(6)
        once = {asn: chain.dump(asn) for asn in chain.speakers}

        chain.schedule_withdraw(7, AS_A, "10.1.0.0/16")
        assert chain.run(10) == []
        assert {asn: chain.dump(asn) for asn in chain.speakers} == once


class TestFaults:
    def test_leak_is_observable(self, chain):
        injector = FaultInjector(chain)
        chain.schedule_advertise(1, AS_A, "10.1.0.0/16")
        injector.schedule_leak(5, AS_C, "10.1.0.0/16")
        assert chain.run(10) == []

        leaked = chain.select(AS_C, "10.1.0.0/16")
        assert leaked.next_hop == AS_C
        assert not chain.speaker(AS_C).is_legitimate(leaked)

    def test_propagated_leak_pulls_neighbours(self, chain):
        injector = FaultInjector(chain)
        chain.schedule_advertise(1, AS_A, "10.1.0.0/16")
        injector.schedule_leak(5, AS_C, "10.1.0.0/16", propagate=True)
        assert chain.run(10) == []

        # D hears (C) directly, as short as (A); the smaller next hop keeps A
        assert chain.select(AS_D, "10.1.0.0/16").next_hop == AS_A
        # B hears (A) and (C): same length, smaller next hop wins
        assert chain.select(AS_B, "10.1.0.0/16").next_hop == AS_A
        assert_selection_is_best(chain)

    def test_link_failure_fails_over(self, chain):
        injector = FaultInjector(chain)
        chain.schedule_advertise(1, AS_D, "10.4.0.0/16")
        injector.schedule_link_failure(5, AS_A, AS_D)
        assert chain.run(10) == []

        route = chain.select(AS_A, "10.4.0.0/16")
        assert route.next_hop == AS_B
        assert route.path == (AS_D, AS_C, AS_B)
        assert_selection_is_best(chain)
        assert_loop_free(chain)

    def test_link_failure_without_alternate_removes_route(self):
        network = Network()
        network.add_speaker(AS_A)
        network.add_speaker(AS_B)
        network.connect(AS_A, AS_B)
        injector = FaultInjector(network)
        network.schedule_advertise(1, AS_B, Prefix.parse("10.2.0.0/16"))
        injector.schedule_link_failure(3, AS_A, AS_B)
        assert network.run(5) == []

        assert network.dump(AS_A) == []
        assert len(network.dump(AS_B)) == 1
