import os

ROLE_STORE_KEY = os.getenv('ROLE_STORE_KEY', 'ehs_custom_roles')
MIN_ROLE_NAME_LENGTH = 3
ROLE_ID_PREFIX = 'role_'
COPY_SUFFIX = 'Copy'

SCOPES = ('core', 'full')
GRANULARITIES = ('action', 'category')
DEFAULT_SCOPE = 'core'
DEFAULT_GRANULARITY = 'action'

LIST_DEFAULT_LIMIT = 50
LIST_MAX_LIMIT = 200
