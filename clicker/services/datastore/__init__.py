"""Database integration for users, profiles, activity and programs."""

from . import util, models, users, profiles, programs
from .exceptions import NoSuchUser, NoSuchProfile, ProgramNotFound

init_app = util.init_app
create_all = util.create_all
drop_all = util.drop_all
transaction = util.transaction
is_available = util.is_available
