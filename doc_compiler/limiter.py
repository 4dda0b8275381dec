from slowapi import Limiter
from slowapi.util import get_remote_address

# Shared by every router so app.state holds the instance that counts requests
limiter = Limiter(key_func=get_remote_address)
