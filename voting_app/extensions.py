# voting_app/extensions.py

from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()  # Database ORM
migrate = Migrate()  # DB migrations
limiter = Limiter(key_func=get_remote_address, default_limits=["10000/hour"])
