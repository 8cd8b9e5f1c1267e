# voting_app/database/models.py

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.orm import column_property

from voting_app.extensions import db

ROLE_VOTER = 'voter'
ROLE_ADMIN = 'admin'


class Voter(db.Model):
    __tablename__ = 'voters'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    registration_number = db.Column(db.String(50), unique=True, nullable=False)
    national_id_hash = db.Column(db.String(200), nullable=False)  # Argon2id
    role = db.Column(db.String(20), nullable=False, default=ROLE_VOTER)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    votes = db.relationship('Vote', backref='voter', lazy=True)

    def to_session(self):
        return {
            'id': self.id,
            'role': self.role,
            'name': self.name,
            'registrationNumber': self.registration_number,
        }

    def __repr__(self):
        return f'<Voter {self.registration_number}>'


class Vacancy(db.Model):
    __tablename__ = 'vacancies'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(100), unique=True, nullable=False)
    description = db.Column(db.Text, nullable=False)
    requirements = db.Column(db.Text, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    candidates = db.relationship('Candidate', backref='vacancy', lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'description': self.description,
            'requirements': self.requirements,
        }


class Candidate(db.Model):
    __tablename__ = 'candidates'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    vacancy_id = db.Column(db.Integer, db.ForeignKey('vacancies.id'), nullable=False)
    manifesto = db.Column(db.Text, nullable=False)
    image_url = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    votes = db.relationship('Vote', backref='candidate', lazy=True)

    @property
    def position(self):
        return self.vacancy.title

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'position': self.position,
            'vacancyId': self.vacancy_id,
            'manifesto': self.manifesto,
            'image_url': self.image_url,
            'voteCount': self.vote_count,
        }

    def to_result(self):
        return {
            'id': self.id,
            'name': self.name,
            'position': self.position,
            'manifesto': self.manifesto,
            'image_url': self.image_url,
            'vote_count': self.vote_count,
        }


class ElectionDate(db.Model):
    __tablename__ = 'election_dates'
    id = db.Column(db.Integer, primary_key=True)
    start_date = db.Column(db.DateTime, nullable=False)
    end_date = db.Column(db.DateTime, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'start_date': self.start_date.isoformat(),
            'end_date': self.end_date.isoformat(),
        }


class Vote(db.Model):
    __tablename__ = 'votes'
    # One vote per voter per position, enforced by the database
    __table_args__ = (
        db.UniqueConstraint('voter_id', 'vacancy_id', name='uq_votes_voter_vacancy'),
    )
    id = db.Column(db.Integer, primary_key=True)
    voter_id = db.Column(db.Integer, db.ForeignKey('voters.id'), nullable=False)
    candidate_id = db.Column(db.Integer, db.ForeignKey('candidates.id'), nullable=False, index=True)
    vacancy_id = db.Column(db.Integer, db.ForeignKey('vacancies.id'), nullable=False)
    cast_at = db.Column(db.DateTime, default=datetime.utcnow)

    vacancy = db.relationship('Vacancy', lazy=True)

    def to_status(self):
        return {
            'candidate_id': self.candidate_id,
            'vacancy_id': self.vacancy_id,
            'position': self.vacancy.title,
        }

    def __repr__(self):
        return f'<Vote {self.id} by Voter {self.voter_id}>'


Candidate.vote_count = column_property(
    select(func.count(Vote.id))
    .where(Vote.candidate_id == Candidate.id)
    .correlate_except(Vote)
    .scalar_subquery()
)
