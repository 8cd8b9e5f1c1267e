import io
from datetime import datetime, timedelta

import pytest

from voting_app import create_app
from voting_app.config import TestingConfig
from voting_app.database.models import ROLE_ADMIN, ElectionDate, Voter
from voting_app.extensions import db
from voting_app.security.credential_hashing import CredentialHashingService

ADMIN_REG = "ADM001"
ADMIN_NID = "ADMIN-NID-1"


@pytest.fixture
def app(tmp_path):
    app = create_app(TestingConfig, {
        'UPLOAD_FOLDER': str(tmp_path / "uploads"),
        'AUDIT_LOG_DIR': str(tmp_path / "logs"),
    })
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin(app):
    voter = Voter(
        name="Returning Officer",
        registration_number=ADMIN_REG,
        national_id_hash=CredentialHashingService().hash_secret(ADMIN_NID),
        role=ROLE_ADMIN,
    )
    db.session.add(voter)
    db.session.commit()
    return voter


@pytest.fixture
def admin_client(client, admin):
    resp = client.post('/login', json={'registrationNumber': ADMIN_REG, 'nationalId': ADMIN_NID})
    assert resp.status_code == 200
    return client


@pytest.fixture
def open_election(app):
    now = datetime.utcnow()
    election = ElectionDate(start_date=now - timedelta(hours=1), end_date=now + timedelta(hours=1))
    db.session.add(election)
    db.session.commit()
    return election


def image_file(name="photo.png"):
    return (io.BytesIO(b"\x89PNG\r\n\x1a\nfake"), name)


def register_voter(client, name="A", reg="R1", nid="N1", role=None):
    payload = {'name': name, 'registrationNumber': reg, 'nationalId': nid}
    if role:
        payload['role'] = role
    return client.post('/register-voter', json=payload)


def create_vacancy(client, title="President"):
    return client.post('/create-vacancy', json={
        'title': title,
        'description': f"Leads the {title.lower()} office",
        'requirements': "Final-year student",
    })


def register_candidate(client, name="X", position="President"):
    return client.post('/register-candidate', data={
        'name': name,
        'position': position,
        'manifesto': f"{name} for {position}",
        'image': image_file(),
    }, content_type='multipart/form-data')


def login(client, reg="R1", nid="N1"):
    return client.post('/login', json={'registrationNumber': reg, 'nationalId': nid})
