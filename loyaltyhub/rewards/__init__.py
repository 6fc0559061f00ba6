from flask import Blueprint

rewards = Blueprint('rewards', __name__)

from loyaltyhub.rewards import routes   # noqa: F401, E402
from loyaltyhub.rewards import models   # noqa: F401, E402
