from models.users import User, UserPhone
from models.stores import Store
from models.user_profiles import UserProfile
from models.refresh_tokens import RefreshToken
from models.logs import AccessLog, SystemLog

__all__ = ["User", "UserPhone", "Store", "UserProfile", "RefreshToken", "AccessLog", "SystemLog"]
