# Importing the package registers every mapped class, so string relationships resolve
from models import users, team, equipment, request, log  # noqa: F401
