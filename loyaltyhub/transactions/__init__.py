from flask import Blueprint

transactions = Blueprint('transactions', __name__)

from loyaltyhub.transactions import routes   # noqa: F401, E402
from loyaltyhub.transactions import models   # noqa: F401, E402
