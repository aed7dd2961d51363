# Overview: Flask extension instances for database, migrations, and Web Push delivery.

from flask_sqlalchemy import SQLAlchemy
from flask_migrate import Migrate

from .services.push_transport import PushTransport

db = SQLAlchemy()
migrate = Migrate()
push_transport = PushTransport()
