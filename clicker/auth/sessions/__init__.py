"""
Integration with the bearer-token session store.

In this implementation, we use a key-value store (Redis) to hold sessions
as signed JSON web tokens. The bearer token handed to the client is an opaque
random string that only serves as a key into the store.

See :mod:`.store`.
"""

from . import store
