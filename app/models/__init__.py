# Alembic will detect models here
from .vehicle import Vehicle
from .content import PageContent
from .user import User
