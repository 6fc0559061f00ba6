from flask import Blueprint

comments = Blueprint('comments', __name__)

from loyaltyhub.comments import routes   # noqa: F401, E402
from loyaltyhub.comments import models   # noqa: F401, E402
