from datetime import datetime, timedelta

import pytest

from conftest import create_vacancy, login, register_candidate, register_voter
from voting_app import voting
from voting_app.database.models import ElectionDate, Vote
from voting_app.extensions import db


@pytest.fixture
def ballot(admin_client):
    """Voter R1, two presidential candidates and one treasurer candidate."""
    register_voter(admin_client, name="A", reg="R1", nid="N1")
    register_voter(admin_client, name="B", reg="R2", nid="N2")
    create_vacancy(admin_client, "President")
    create_vacancy(admin_client, "Treasurer")
    ids = {
        'x': register_candidate(admin_client, "X", "President").get_json()['candidateId'],
        'y': register_candidate(admin_client, "Y", "President").get_json()['candidateId'],
        'z': register_candidate(admin_client, "Z", "Treasurer").get_json()['candidateId'],
    }
    return ids


def _count(client, candidate_id):
    for candidate in client.get('/candidates').get_json():
        if candidate['id'] == candidate_id:
            return candidate['voteCount']
    raise AssertionError(f"candidate {candidate_id} not listed")


def test_vote_scenario(admin_client, ballot, open_election):
    resp = login(admin_client, "R1", "N1")
    assert resp.get_json()['role'] == 'voter'

    first = admin_client.post(f"/vote/{ballot['x']}")
    assert first.status_code == 200
    assert first.get_json()['success'] is True

    second = admin_client.post(f"/vote/{ballot['x']}")
    assert second.status_code == 400
    assert second.get_json()['message'] == 'You have already voted for this position'

    assert _count(admin_client, ballot['x']) == 1


def test_second_candidate_same_position_rejected(admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    assert admin_client.post(f"/vote/{ballot['x']}").status_code == 200
    assert admin_client.post(f"/vote/{ballot['y']}").status_code == 400
    assert _count(admin_client, ballot['y']) == 0


def test_client_supplied_position_is_ignored(admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    admin_client.post(f"/vote/{ballot['x']}")
    resp = admin_client.post(f"/vote/{ballot['y']}", json={'position': 'Treasurer'})
    assert resp.status_code == 400

    vote = db.session.query(Vote).one()
    assert vote.vacancy.title == "President"


def test_votes_in_different_positions(admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    assert admin_client.post(f"/vote/{ballot['x']}").status_code == 200
    assert admin_client.post(f"/vote/{ballot['z']}").status_code == 200
    assert db.session.query(Vote).count() == 2


def test_vote_count_matches_vote_rows(admin_client, ballot, open_election):
    for reg, nid in (("R1", "N1"), ("R2", "N2")):
        login(admin_client, reg, nid)
        admin_client.post(f"/vote/{ballot['x']}")

    rows = db.session.query(Vote).filter_by(candidate_id=ballot['x']).count()
    assert rows == 2
    assert _count(admin_client, ballot['x']) == rows


def test_vote_requires_session(client):
    resp = client.post('/vote/1')
    assert resp.status_code == 401


def test_vote_unknown_candidate(admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    resp = admin_client.post('/vote/9999')
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Candidate not found'


def test_vote_unknown_voter(admin_client, ballot, open_election):
    with admin_client.session_transaction() as sess:
        sess['user'] = {'id': 77, 'role': 'voter', 'name': 'Ghost', 'registrationNumber': 'GONE'}
    resp = admin_client.post(f"/vote/{ballot['x']}")
    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'Voter not found'


def test_vote_without_election_window(admin_client, ballot):
    login(admin_client, "R1", "N1")
    resp = admin_client.post(f"/vote/{ballot['x']}")
    assert resp.status_code == 403
    assert db.session.query(Vote).count() == 0


def test_vote_after_election_closed(admin_client, ballot):
    now = datetime.utcnow()
    db.session.add(ElectionDate(start_date=now - timedelta(days=2), end_date=now - timedelta(days=1)))
    db.session.commit()
    login(admin_client, "R1", "N1")
    assert admin_client.post(f"/vote/{ballot['x']}").status_code == 403


def test_cast_vote_relies_on_unique_constraint(app, admin_client, ballot, open_election):
    # A duplicate reaching the INSERT is still refused by the database
    voting.cast_vote("R1", ballot['x'])
    with pytest.raises(voting.DuplicateVote):
        voting.cast_vote("R1", ballot['y'])
    assert db.session.query(Vote).count() == 1


def test_duplicate_vote_is_audited(app, admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    admin_client.post(f"/vote/{ballot['x']}")
    admin_client.post(f"/vote/{ballot['x']}")
    events = [e['event_type'] for e in app.extensions['audit_logger'].read_entries()]
    assert 'vote_cast' in events
    assert 'duplicate_vote_attempt' in events


def test_check_vote_status_own_votes(admin_client, ballot, open_election):
    login(admin_client, "R1", "N1")
    admin_client.post(f"/vote/{ballot['x']}")

    resp = admin_client.post('/check-vote-status', json={'registrationNumber': 'R1'})
    assert resp.status_code == 200
    votes = resp.get_json()['votes']
    assert votes == [{'candidate_id': ballot['x'], 'position': 'President', 'vacancy_id': votes[0]['vacancy_id']}]

    # defaults to the session user
    assert admin_client.post('/check-vote-status', json={}).get_json()['votes'] == votes


def test_check_vote_status_other_voter_forbidden(admin_client, ballot):
    login(admin_client, "R1", "N1")
    resp = admin_client.post('/check-vote-status', json={'registrationNumber': 'R2'})
    assert resp.status_code == 403


def test_check_vote_status_admin_any_voter(admin_client, ballot, open_election):
    resp = admin_client.post('/check-vote-status', json={'registrationNumber': 'R2'})
    assert resp.status_code == 200
    assert resp.get_json() == {'votes': []}

    resp = admin_client.post('/check-vote-status', json={'registrationNumber': 'UNKNOWN'})
    assert resp.status_code == 404


def test_check_vote_status_requires_session(client):
    assert client.post('/check-vote-status', json={'registrationNumber': 'R1'}).status_code == 401
