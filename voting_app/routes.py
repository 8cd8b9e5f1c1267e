# voting_app/routes.py

# REST endpoints for registration, elections, login and voting.
# Each handler validates its input, performs one read or write and returns JSON.

from flask import Blueprint, abort, current_app, jsonify, request, send_from_directory
from sqlalchemy.exc import IntegrityError

from voting_app.authentication.rbac import (
    Permission, current_user, login_required, rbac_service, require_permission,
)
from voting_app.authentication.session import (
    authenticate, credential_service, end_session, start_session,
)
from voting_app.database.models import (
    ROLE_ADMIN, ROLE_VOTER, Candidate, ElectionDate, Vacancy, Voter,
)
from voting_app.extensions import db, limiter
from voting_app.security.input_validator import InputValidator, ValidationError
from voting_app.uploads import remove_upload, save_candidate_image
from voting_app import voting

bp = Blueprint('api', __name__)

validator = InputValidator()


def audit(event_type, data):
    user = current_user()
    current_app.extensions['audit_logger'].log_event(
        event_type, data, user_id=user['id'] if user else None
    )


def login_guard():
    return current_app.extensions['login_guard']


def _json_body():
    return request.get_json(silent=True) or {}


def _required(data, fields):
    try:
        return validator.require_fields(data, fields)
    except ValidationError as e:
        abort(400, description=str(e))


# --- Admin: registration and setup -------------------------------------------

@bp.route('/register-voter', methods=['POST'])
@require_permission(Permission.REGISTER_VOTERS)
def register_voter():
    data = _json_body()
    fields = _required(data, ['name', 'registrationNumber', 'nationalId'])
    role = str(data.get('role') or ROLE_VOTER).lower().strip()
    if role not in (ROLE_VOTER, ROLE_ADMIN):
        abort(400, description='Role must be voter or admin')
    if not validator.validate_registration_number(fields['registrationNumber']):
        abort(400, description='Invalid registration number')
    if not validator.validate_national_id(fields['nationalId']):
        abort(400, description='Invalid national ID')

    voter = Voter(
        name=validator.sanitize_string(fields['name'], max_length=100),
        registration_number=fields['registrationNumber'],
        national_id_hash=credential_service.hash_secret(fields['nationalId']),
        role=role,
    )
    db.session.add(voter)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description='A voter with this registration number already exists')

    audit('voter_registered', {'voter_id': voter.id, 'role': role})
    return jsonify({'message': 'Voter registered successfully', 'voterId': voter.id}), 201


def _resolve_vacancy(form):
    vacancy_id = form.get('vacancyId')
    if vacancy_id:
        try:
            vacancy = db.session.get(Vacancy, int(vacancy_id))
        except ValueError:
            abort(400, description='Invalid vacancy id')
    else:
        position = validator.sanitize_string(form.get('position') or '', max_length=100)
        if not position:
            abort(400, description='All fields are required')
        vacancy = db.session.query(Vacancy).filter_by(title=position).first()
    if vacancy is None:
        abort(404, description='Vacancy not found')
    return vacancy


@bp.route('/register-candidate', methods=['POST'])
@require_permission(Permission.MANAGE_CANDIDATES)
def register_candidate():
    fields = _required(request.form, ['name', 'manifesto'])
    vacancy = _resolve_vacancy(request.form)
    try:
        image_url = save_candidate_image(request.files.get('image'), validator)
    except ValidationError as e:
        abort(400, description=str(e))

    candidate = Candidate(
        name=validator.sanitize_string(fields['name'], max_length=100),
        vacancy_id=vacancy.id,
        manifesto=validator.sanitize_string(fields['manifesto'], max_length=5000),
        image_url=image_url,
    )
    db.session.add(candidate)
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        remove_upload(image_url)
        raise

    audit('candidate_registered', {'candidate_id': candidate.id, 'vacancy_id': vacancy.id})
    return jsonify({'message': 'Candidate registered successfully', 'candidateId': candidate.id}), 201


@bp.route('/create-vacancy', methods=['POST'])
@require_permission(Permission.MANAGE_VACANCIES)
def create_vacancy():
    fields = _required(_json_body(), ['title', 'description', 'requirements'])
    vacancy = Vacancy(
        title=validator.sanitize_string(fields['title'], max_length=100),
        description=validator.sanitize_string(fields['description'], max_length=5000),
        requirements=validator.sanitize_string(fields['requirements'], max_length=5000),
    )
    db.session.add(vacancy)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        abort(409, description='A vacancy with this title already exists')

    audit('vacancy_created', {'vacancy_id': vacancy.id, 'title': vacancy.title})
    return jsonify({'message': 'Vacancy created successfully', 'vacancyId': vacancy.id}), 201


@bp.route('/set-election-date', methods=['POST'])
@require_permission(Permission.MANAGE_ELECTIONS)
def set_election_date():
    fields = _required(_json_body(), ['start', 'end'])
    try:
        start_at, end_at = validator.validate_election_window(fields['start'], fields['end'])
    except ValidationError as e:
        abort(400, description=str(e))

    election = ElectionDate(start_date=start_at, end_date=end_at)
    db.session.add(election)
    db.session.commit()

    audit('election_window_set', election.to_dict())
    return jsonify({'message': 'Election date set successfully', 'electionId': election.id}), 201


@bp.route('/audit-log')
@require_permission(Permission.VIEW_AUDIT_LOGS)
def audit_log():
    audit_logger = current_app.extensions['audit_logger']
    return jsonify({
        'entries': audit_logger.read_entries(),
        'integrity': audit_logger.verify_log_integrity(),
    })


# --- Public listings ---------------------------------------------------------

@bp.route('/vacancies')
def list_vacancies():
    vacancies = db.session.query(Vacancy).order_by(Vacancy.id).all()
    return jsonify([v.to_dict() for v in vacancies])


@bp.route('/candidates')
def list_candidates():
    candidates = db.session.query(Candidate).order_by(Candidate.id).all()
    return jsonify([c.to_dict() for c in candidates])


@bp.route('/election-dates')
def list_election_dates():
    elections = db.session.query(ElectionDate).order_by(ElectionDate.id).all()
    return jsonify([e.to_dict() for e in elections])


@bp.route('/election-status')
def election_status():
    return jsonify(voting.election_status())


@bp.route('/results')
def results():
    query = db.session.query(Candidate).join(Vacancy)
    position = validator.sanitize_string(request.args.get('position', ''), max_length=100)
    if position:
        query = query.filter(Vacancy.title == position)
    candidates = query.order_by(Vacancy.id, Candidate.vote_count.desc(), Candidate.id).all()
    return jsonify([c.to_result() for c in candidates])


@bp.route('/uploads/<path:filename>')
def uploaded_file(filename):
    return send_from_directory(current_app.config['UPLOAD_FOLDER'], filename)


# --- Session -----------------------------------------------------------------

@bp.route('/login', methods=['POST'])
@limiter.limit(lambda: current_app.config['LOGIN_RATE_LIMIT'])
def login():
    client = request.remote_addr or 'unknown'
    guard = login_guard()
    if guard.is_locked(client):
        audit('login_locked_out', {'ip': client})
        response = jsonify({'success': False, 'message': 'Too many failed attempts, try again later'})
        response.headers['Retry-After'] = str(guard.retry_after(client))
        return response, 429

    fields = _required(_json_body(), ['registrationNumber', 'nationalId'])
    voter = authenticate(fields['registrationNumber'], fields['nationalId'])
    if voter is None:
        delay = guard.record_failure(client)
        audit('failed_login', {'registration_number': fields['registrationNumber'], 'ip': client})
        current_app.logger.warning("Failed login from %s (retry in %ss)", client, delay)
        return jsonify({'success': False, 'message': 'Invalid credentials'}), 401

    guard.record_success(client)
    start_session(voter)
    audit('successful_login', {'voter_id': voter.id, 'role': voter.role})
    return jsonify({'success': True, 'role': voter.role, 'message': 'Login successful'})


@bp.route('/logout', methods=['POST'])
def logout():
    end_session()
    return jsonify({'message': 'Logged out successfully'})


@bp.route('/session')
def get_session():
    user = current_user()
    if user is None:
        abort(401, description='User not logged in')
    return jsonify(user)


# --- Voting ------------------------------------------------------------------

@bp.route('/vote/<int:candidate_id>', methods=['POST'])
@limiter.limit(lambda: current_app.config['VOTE_RATE_LIMIT'])
@require_permission(Permission.VOTE)
def vote(candidate_id):
    user = current_user()
    try:
        cast = voting.cast_vote(user['registrationNumber'], candidate_id)
    except voting.DuplicateVote as e:
        audit('duplicate_vote_attempt', {'voter_id': user['id'], 'candidate_id': candidate_id})
        abort(e.status_code, description=e.message)
    except voting.VotingError as e:
        abort(e.status_code, description=e.message)

    audit('vote_cast', {'vote_id': cast.id, 'vacancy_id': cast.vacancy_id})
    return jsonify({'success': True, 'voteId': cast.id})


@bp.route('/check-vote-status', methods=['POST'])
@login_required
def check_vote_status():
    user = current_user()
    registration_number = _json_body().get('registrationNumber') or user['registrationNumber']
    registration_number = str(registration_number).strip()

    if registration_number != user['registrationNumber']:
        if not rbac_service.has_permission(user['role'], Permission.VIEW_ANY_STATUS):
            abort(403, description='You may only view your own votes')
    elif not rbac_service.has_permission(user['role'], Permission.VIEW_OWN_STATUS):
        abort(403, description='Forbidden')

    try:
        votes = voting.votes_for(registration_number)
    except voting.VotingError as e:
        abort(e.status_code, description=e.message)
    return jsonify({'votes': votes})
