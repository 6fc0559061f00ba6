from flask import Blueprint

customers = Blueprint('customers', __name__)

from loyaltyhub.customers import routes   # noqa: F401, E402
from loyaltyhub.customers import models   # noqa: F401, E402  (registers the table with SQLAlchemy)
