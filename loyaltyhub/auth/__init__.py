from flask import Blueprint

auth = Blueprint('auth', __name__)

from loyaltyhub.auth import routes   # noqa: F401, E402
from loyaltyhub.auth import models   # noqa: F401, E402  (registers the table with SQLAlchemy)
