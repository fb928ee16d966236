"""ORM models, the DBStorage wrapper and the stores built on top of it."""
from models.base_model import Base, utcnow
from models.user import User, Role
from models.refresh_session import RefreshSession
from models.ban import Ban
from models.db_storage import DBStorage
from models.stores import UserStore, SessionStore, BanStore
