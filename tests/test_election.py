import time

from auditchain.chain import ChainManager
from auditchain.election import ElectionManager
from auditchain.heartbeat import ElectionState, HeartbeatTable
from auditchain.mempool import Mempool
from auditchain.service import BlockChainService, ElectionResponse


class Voter:
    def __init__(self, vote=False, fail=False):
        self.vote = vote
        self.fail = fail
        self.notified = []

    def trigger_election(self, address):
        if self.fail:
            raise ConnectionError("unreachable")
        return ElectionResponse(vote=self.vote)

    def notify_leadership(self, address):
        if self.fail:
            raise ConnectionError("unreachable")
        self.notified.append(address)
        return "success"


def make_manager(peers, state=None, table=None, **kwargs):
    return ElectionManager(
        peers,
        "self:1",
        table if table is not None else HeartbeatTable(15),
        state if state is not None else ElectionState(),
        **kwargs,
    )


def test_needs_election_without_leader():
    assert make_manager({}).needs_election() is True


def test_no_election_while_leader_alive():
    table = HeartbeatTable(15)
    table.update("leader:1", "leader:1", 3, 0)
    state = ElectionState(current_leader="leader:1")
    assert make_manager({}, state=state, table=table).needs_election() is False


def test_election_needed_when_leader_dead():
    now = [0.0]
    table = HeartbeatTable(15, clock=lambda: now[0])
    table.update("leader:1", "leader:1", 3, 0)
    now[0] = 100.0
    table.sweep()
    state = ElectionState(current_leader="leader:1")
    assert make_manager({}, state=state, table=table).needs_election() is True


def test_alone_wins_election():
    state = ElectionState()
    assert make_manager({}, state=state).run_election() is True
    assert state.current_leader == "self:1"


def test_tie_wins_and_notifies_all():
    state = ElectionState()
    yes, no = Voter(vote=True), Voter(vote=False)
    manager = make_manager({"a": yes, "b": no}, state=state)
    assert manager.run_election() is True
    assert state.current_leader == "self:1"
    assert yes.notified == ["self:1"]
    assert no.notified == ["self:1"]


def test_majority_rejection_loses():
    state = ElectionState(current_leader="")
    voters = {"a": Voter(), "b": Voter()}
    assert make_manager(voters, state=state).run_election() is False
    assert state.current_leader == ""
    assert all(v.notified == [] for v in voters.values())


def test_unreachable_peers_are_not_counted():
    state = ElectionState()
    peers = {"a": Voter(fail=True), "b": Voter(fail=True), "c": Voter()}
    assert make_manager(peers, state=state).run_election() is True
    assert state.current_leader == "self:1"


def test_real_peer_learns_new_leader(tmp_path):
    peer_state = ElectionState()
    peer = BlockChainService(
        Mempool(tmp_path / "mempool.dat"),
        ChainManager(tmp_path / "chain.json"),
        HeartbeatTable(15),
        peer_state,
        "peer:1",
    )
    state = ElectionState()
    # candidate "self:1" sorts after "peer:1", so the peer votes yes
    assert make_manager({"peer:1": peer}, state=state).run_election() is True
    assert peer_state.voted_for == "self:1"
    assert peer_state.current_leader == "self:1"


def test_background_thread_elects_self():
    state = ElectionState()
    manager = make_manager({}, state=state, interval=0.01, initial_delay=0)
    manager.start()
    deadline = time.monotonic() + 5
    while state.current_leader != "self:1" and time.monotonic() < deadline:
        time.sleep(0.01)
    manager.stop()
    assert state.current_leader == "self:1"
    assert manager.running is False