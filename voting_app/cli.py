# voting_app/cli.py

import click
from sqlalchemy.exc import IntegrityError

from voting_app.database.models import ROLE_ADMIN, Voter
from voting_app.extensions import db
from voting_app.security.credential_hashing import CredentialHashingService


@click.command('init-db')
def init_db_command():
    """Create all tables directly (development; use `flask db upgrade` otherwise)."""
    db.create_all()
    click.echo("Database tables created.")


@click.command('create-admin')
@click.option('--name', required=True)
@click.option('--registration-number', required=True)
@click.option('--national-id', required=True, prompt=True, hide_input=True)
def create_admin_command(name, registration_number, national_id):
    """Seed an administrator account so the registration endpoints can be used."""
    admin = Voter(
        name=name,
        registration_number=registration_number.strip(),
        national_id_hash=CredentialHashingService().hash_secret(national_id),
        role=ROLE_ADMIN,
    )
    db.session.add(admin)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise click.ClickException(f"Registration number {registration_number} is already in use")
    click.echo(f"Admin {registration_number} created.")


def init_app(app):
    app.cli.add_command(init_db_command)
    app.cli.add_command(create_admin_command)
