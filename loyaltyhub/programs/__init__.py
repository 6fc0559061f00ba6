from flask import Blueprint

programs = Blueprint('programs', __name__)

from loyaltyhub.programs import routes   # noqa: F401, E402
from loyaltyhub.programs import models   # noqa: F401, E402  (registers the tables with SQLAlchemy)
