import cbor2
import pytest

from ballot import snapshot
from ballot.exceptions import SnapshotError
from ballot.settings import Settings
from ballot.utils import format_bytes32
from tests.utils import check_invariants, make_account

# big-endian length footer after the CBOR payload
SUFFIX_LEN = 4


@pytest.fixture
def mid_election(ballot, deployer, accounts):
    a1, a2, a3, a4 = accounts[1:5]
    for a in (a1, a2, a3, a4):
        ballot.give_right_to_vote(deployer, a)
    ballot.vote(a1, 2)
    ballot.delegate(a2, a1)
    ballot.delegate(a3, a4)
    return ballot


def _payload(data: bytes):
    return cbor2.loads(data[:-SUFFIX_LEN])


def _encode(payload) -> bytes:
    ret = cbor2.dumps(payload)
    return ret + (len(ret) + SUFFIX_LEN).to_bytes(SUFFIX_LEN, "big")


def test_round_trip(mid_election, accounts):
    restored = snapshot.loads(snapshot.dumps(mid_election))

    assert restored.chairperson == mid_election.chairperson
    assert restored.voter_count == mid_election.voter_count
    assert restored.get_proposals() == mid_election.get_proposals()
    for a in accounts[:6]:
        assert restored.voters(a) == mid_election.voters(a)
    check_invariants(restored)

    # the restored ballot keeps working
    restored.vote(accounts[4], 0)
    assert restored.tallies() == [2, 0, 2]
    check_invariants(restored)


def test_default_records_are_not_stored(ballot, deployer, accounts):
    # reading an unknown voter must not grow the snapshot
    ballot.voters(accounts[7])
    chairperson, proposals, voters, voter_count, meta = _payload(snapshot.dumps(ballot))
    assert chairperson == deployer
    assert voters == [[deployer, 1, False, None, 0]]
    assert voter_count == 0
    assert proposals[0] == [format_bytes32("Proposal 1"), 0]
    assert meta == {"ballot": [0, 1, 0]}


def test_dump_and_load(mid_election, tmp_path):
    path = tmp_path / "ballot.cbor"
    snapshot.dump(mid_election, path)
    restored = snapshot.load(path, Settings(require_registered_delegate=True))
    assert restored.tallies() == mid_election.tallies()
    assert restored.settings.require_registered_delegate is True


def test_settings_are_not_stored(mid_election):
    data = snapshot.dumps(mid_election)
    assert snapshot.loads(data).settings == Settings()


@pytest.mark.parametrize("cut", [1, 2, 10])
def test_truncated(mid_election, cut):
    data = snapshot.dumps(mid_election)
    with pytest.raises(SnapshotError, match="length mismatch"):
        snapshot.loads(data[:-cut])


def test_empty():
    with pytest.raises(SnapshotError):
        snapshot.loads(b"")


def test_not_cbor():
    data = b"\xff\xff\xff"
    data += (len(data) + SUFFIX_LEN).to_bytes(SUFFIX_LEN, "big")
    with pytest.raises(SnapshotError):
        snapshot.loads(data)


def test_wrong_shape():
    with pytest.raises(SnapshotError, match="wrong shape"):
        snapshot.loads(_encode([1, 2, 3]))


def test_newer_major_version(mid_election):
    payload = _payload(snapshot.dumps(mid_election))
    payload[4] = {"ballot": [99, 0, 0]}
    with pytest.raises(SnapshotError, match="newer") as e:
        snapshot.loads(_encode(payload))
    assert e.value.hint == "upgrade ballot to read this snapshot"


def test_older_version_accepted(mid_election):
    payload = _payload(snapshot.dumps(mid_election))
    payload[4] = {"ballot": [0, 0, 1]}
    assert snapshot.loads(_encode(payload)).tallies() == mid_election.tallies()


@pytest.mark.parametrize("meta", [{}, [0, 1, 0], {"ballot": ["x"]}])
def test_bad_version(mid_election, meta):
    payload = _payload(snapshot.dumps(mid_election))
    payload[4] = meta
    with pytest.raises(SnapshotError):
        snapshot.loads(_encode(payload))


def test_cycle_rejected(mid_election, accounts):
    a1, a2 = accounts[1:3]
    payload = _payload(snapshot.dumps(mid_election))
    # a1 voted directly; rewrite it into a delegation back to a2
    for record in payload[2]:
        if record[0] == a1:
            record[3] = a2
    with pytest.raises(SnapshotError, match="cycle"):
        snapshot.loads(_encode(payload))


def test_delegate_without_voted_rejected(mid_election, accounts):
    payload = _payload(snapshot.dumps(mid_election))
    for record in payload[2]:
        if record[0] == accounts[2]:
            record[2] = False
    with pytest.raises(SnapshotError, match="did not vote"):
        snapshot.loads(_encode(payload))


def test_missing_proposal_rejected(mid_election, accounts):
    payload = _payload(snapshot.dumps(mid_election))
    for record in payload[2]:
        if record[0] == accounts[1]:
            record[4] = 7
    with pytest.raises(SnapshotError, match="missing proposal"):
        snapshot.loads(_encode(payload))


def test_unchecksummed_identity_rejected(mid_election, accounts):
    payload = _payload(snapshot.dumps(mid_election))
    payload[0] = payload[0].lower()
    with pytest.raises(SnapshotError, match="chairperson"):
        snapshot.loads(_encode(payload))


def test_duplicate_voter_rejected(mid_election):
    payload = _payload(snapshot.dumps(mid_election))
    payload[2].append(payload[2][0])
    with pytest.raises(SnapshotError, match="duplicate"):
        snapshot.loads(_encode(payload))


def test_negative_weight_rejected(mid_election, deployer):
    payload = _payload(snapshot.dumps(mid_election))
    for record in payload[2]:
        if record[0] == deployer:
            record[1] = -1
    with pytest.raises(SnapshotError, match="negative"):
        snapshot.loads(_encode(payload))


def test_no_proposals_rejected(mid_election):
    payload = _payload(snapshot.dumps(mid_election))
    payload[1] = []
    with pytest.raises(SnapshotError, match="no proposals"):
        snapshot.loads(_encode(payload))


def test_large_registry(make_ballot, deployer):
    c = make_ballot()
    voters = [make_account(i) for i in range(100, 3100)]
    for a in voters:
        c.give_right_to_vote(deployer, a)
    # delegations and votes spread over the registry
    for i in range(0, len(voters) - 1, 3):
        c.delegate(voters[i], voters[i + 1])
    for i in range(1, len(voters), 6):
        c.vote(voters[i], i % 3)

    data = snapshot.dumps(c)
    assert len(data) > 2**16

    restored = snapshot.loads(data)
    assert restored.voter_count == len(voters)
    assert restored.tallies() == c.tallies()
    for a in voters[:30]:
        assert restored.voters(a) == c.voters(a)
    check_invariants(restored)

    # the restored ballot still takes new voters and can be saved again
    restored.give_right_to_vote(deployer, make_account(5000))
    assert snapshot.loads(snapshot.dumps(restored)).voter_count == len(voters) + 1


def _set_proposal_count(payload, value):
    payload[1][0][1] = value


def _set_proposal_name(payload, value):
    payload[1][0][0] = value


def _set_voter_count(payload, value):
    payload[3] = value


def _set_voter_field(index):
    def fn(payload, value):
        payload[2][0][index] = value

    return fn


@pytest.mark.parametrize(
    "setter,value",
    [
        (_set_proposal_count, float("inf")),
        (_set_proposal_count, 1.5),
        (_set_proposal_count, "1"),
        (_set_proposal_count, True),
        (_set_proposal_name, "Proposal 1"),
        (_set_voter_count, float("inf")),
        (_set_voter_count, None),
        (_set_voter_field(1), 1.0),
        (_set_voter_field(2), "no"),
        (_set_voter_field(2), 1),
        (_set_voter_field(3), 1234),
        (_set_voter_field(4), float("nan")),
        (_set_voter_field(0), b"\x01" * 20),
    ],
)
def test_corrupt_field_rejected(mid_election, setter, value):
    payload = _payload(snapshot.dumps(mid_election))
    setter(payload, value)
    with pytest.raises(SnapshotError):
        snapshot.loads(_encode(payload))


def test_bytes_chairperson_rejected(mid_election):
    payload = _payload(snapshot.dumps(mid_election))
    payload[0] = bytes.fromhex(payload[0][2:])
    with pytest.raises(SnapshotError, match="chairperson"):
        snapshot.loads(_encode(payload))
