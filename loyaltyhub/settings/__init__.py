from flask import Blueprint

settings = Blueprint('settings', __name__)

from loyaltyhub.settings import routes   # noqa: F401, E402
from loyaltyhub.settings import models   # noqa: F401, E402
