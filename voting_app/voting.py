# voting_app/voting.py

import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy.exc import IntegrityError

from voting_app.database.models import Candidate, ElectionDate, Vote, Voter
from voting_app.extensions import db

logger = logging.getLogger(__name__)


class VotingError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class VoterNotFound(VotingError):
    status_code = 404


class CandidateNotFound(VotingError):
    status_code = 404


class ElectionClosed(VotingError):
    status_code = 403


class DuplicateVote(VotingError):
    status_code = 400


def _now() -> datetime:
    # extracted for easier monkeypatching in tests
    return datetime.utcnow()


def active_election(moment: Optional[datetime] = None) -> Optional[ElectionDate]:
    """Return a window covering `moment` (default: now), latest first."""
    moment = moment or _now()
    return (
        db.session.query(ElectionDate)
        .filter(ElectionDate.start_date <= moment, ElectionDate.end_date >= moment)
        .order_by(ElectionDate.id.desc())
        .first()
    )


def election_status() -> Dict:
    current = active_election()
    if current is not None:
        return {'isActive': True, 'current': current.to_dict()}
    latest = db.session.query(ElectionDate).order_by(ElectionDate.id.desc()).first()
    return {'isActive': False, 'current': latest.to_dict() if latest else None}


def cast_vote(registration_number: str, candidate_id: int) -> Vote:
    """
    Record one vote for `candidate_id` on behalf of the voter.

    The position always comes from the candidate row. Uniqueness per
    (voter, position) is left to the database constraint, so concurrent
    duplicates fail on insert instead of slipping past a prior SELECT.
    """
    voter = db.session.query(Voter).filter_by(registration_number=registration_number).first()
    if voter is None:
        raise VoterNotFound('Voter not found')

    candidate = db.session.get(Candidate, candidate_id)
    if candidate is None:
        raise CandidateNotFound('Candidate not found')

    if active_election() is None:
        raise ElectionClosed('Voting is not open')

    vote = Vote(voter_id=voter.id, candidate_id=candidate.id, vacancy_id=candidate.vacancy_id)
    db.session.add(vote)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        logger.info("Duplicate vote by voter %s for vacancy %s", voter.id, candidate.vacancy_id)
        raise DuplicateVote('You have already voted for this position')
    return vote


def votes_for(registration_number: str) -> List[Dict]:
    voter = db.session.query(Voter).filter_by(registration_number=registration_number).first()
    if voter is None:
        raise VoterNotFound('Voter not found')
    votes = db.session.query(Vote).filter_by(voter_id=voter.id).order_by(Vote.id).all()
    return [vote.to_status() for vote in votes]
