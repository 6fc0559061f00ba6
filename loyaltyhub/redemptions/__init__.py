from flask import Blueprint

redemptions = Blueprint('redemptions', __name__)

from loyaltyhub.redemptions import routes   # noqa: F401, E402
from loyaltyhub.redemptions import models   # noqa: F401, E402
