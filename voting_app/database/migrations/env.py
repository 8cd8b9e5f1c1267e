# voting_app/database/migrations/env.py

import logging
from logging.config import fileConfig

from alembic import context
from flask import current_app

from voting_app.extensions import db
from voting_app.database import models  # noqa: F401

config = context.config
fileConfig(config.config_file_name)
logger = logging.getLogger('alembic.env')
target_metadata = db.metadata


def run_migrations_offline():
    url = current_app.config['SQLALCHEMY_DATABASE_URI']
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
    )
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online():
    connectable = db.engine
    with connectable.connect() as connection:
        context.configure(
            connection=connection,
            target_metadata=target_metadata,
            render_as_batch=connection.dialect.name == 'sqlite',
        )
        with context.begin_transaction():
            context.run_migrations()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
