# voting_app/authentication/session.py

from flask import current_app, g, session

from voting_app.database.models import Voter
from voting_app.extensions import db
from voting_app.security.credential_hashing import CredentialHashingService

SESSION_KEY = 'user'

credential_service = CredentialHashingService()


def load_current_user():
    """before_request hook: expose the session user as `g.current_user`."""
    g.current_user = session.get(SESSION_KEY)


def authenticate(registration_number, national_id):
    """Return the voter matching both credentials, or None."""
    voter = db.session.query(Voter).filter_by(registration_number=registration_number).first()
    if voter is None:
        # Keep timing comparable to a real verification
        credential_service.verify_secret(national_id, _dummy_hash())
        return None
    if not credential_service.verify_secret(national_id, voter.national_id_hash):
        return None
    if credential_service.needs_rehash(voter.national_id_hash):
        voter.national_id_hash = credential_service.hash_secret(national_id)
        db.session.commit()
    return voter


def start_session(voter):
    session.clear()
    session[SESSION_KEY] = voter.to_session()
    session.permanent = True
    g.current_user = session[SESSION_KEY]
    current_app.logger.info("Session started for voter %s", voter.id)


def end_session():
    session.clear()
    g.current_user = None


_DUMMY_HASH = None


def _dummy_hash():
    global _DUMMY_HASH
    if _DUMMY_HASH is None:
        _DUMMY_HASH = credential_service.hash_secret('not-a-real-national-id')
    return _DUMMY_HASH
