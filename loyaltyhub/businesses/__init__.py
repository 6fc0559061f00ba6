from flask import Blueprint

businesses = Blueprint('businesses', __name__)

from loyaltyhub.businesses import routes   # noqa: F401, E402
from loyaltyhub.businesses import models   # noqa: F401, E402
