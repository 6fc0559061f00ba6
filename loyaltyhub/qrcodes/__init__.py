from flask import Blueprint

qrcodes = Blueprint('qrcodes', __name__)

from loyaltyhub.qrcodes import routes   # noqa: F401, E402
from loyaltyhub.qrcodes import models   # noqa: F401, E402
