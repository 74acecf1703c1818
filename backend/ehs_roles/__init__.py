from flask import Flask, current_app
from werkzeug.exceptions import HTTPException
from flask_jwt_extended import JWTManager
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool
from sqlalchemy.orm import sessionmaker, scoped_session
from dotenv import load_dotenv
from typing import Optional, Dict, Any
import logging
import os

load_dotenv()

db_engine = None
SessionLocal = None
jwt = JWTManager()


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ('1', 'true', 'yes', 'on')


def _default_config() -> Dict[str, Any]:
    return {
        'JWT_SECRET_KEY': os.getenv('JWT_SECRET_KEY', 'dev-secret'),
        'DATABASE_URL': os.getenv('DATABASE_URL', 'sqlite:///dev.db'),
        'ROLE_STORE_KEY': os.getenv('ROLE_STORE_KEY', 'ehs_custom_roles'),
        'AUTO_CREATE_SCHEMA': _env_flag('AUTO_CREATE_SCHEMA', True),
        'LOG_LEVEL': os.getenv('LOG_LEVEL', 'INFO'),
        # pre-built RoleStore (tests, dry runs); None means the SQL store
        'ROLE_STORE': None,
    }


def _init_database(url: str, create_schema: bool):
    global db_engine, SessionLocal
    if url.endswith(':memory:'):
        # one connection so every session sees the same in-memory database
        db_engine = create_engine(url, future=True, connect_args={'check_same_thread': False}, poolclass=StaticPool)
    else:
        db_engine = create_engine(url, future=True)
    SessionLocal = scoped_session(sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False))
    if create_schema:
        from .models.role_store import Base
        from .models import audit  # noqa: F401
        Base.metadata.create_all(db_engine)


def _error_body(status: int, title: str, detail: str, **extra):
    return {'error': {'status': status, 'title': title, 'detail': detail, **extra}}, status


def _register_error_handlers(app: Flask):
    from .services.errors import RoleValidationError

    @app.errorhandler(RoleValidationError)
    def handle_validation(e):  # type: ignore
        return _error_body(400, 'Bad Request', e.message, code=e.code.value)

    @app.errorhandler(Exception)
    def handle_errors(e):  # type: ignore
        if isinstance(e, HTTPException):
            return _error_body(e.code, e.name, e.description)
        app.logger.exception('Unhandled exception')
        return _error_body(500, 'Internal Server Error', 'Unexpected error')


def create_app(config: Optional[Dict[str, Any]] = None):
    app = Flask(__name__)
    app.config.update(_default_config())
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config['LOG_LEVEL'])
    logging.getLogger('ehs_roles').setLevel(app.config['LOG_LEVEL'])

    _init_database(app.config['DATABASE_URL'], app.config['AUTO_CREATE_SCHEMA'])
    jwt.init_app(app)

    from .routes.catalog import catalog_bp
    from .routes.roles import roles_bp
    app.register_blueprint(catalog_bp)
    app.register_blueprint(roles_bp)

    @app.route('/healthz')
    def health():
        return {'status': 'ok'}

    _register_error_handlers(app)
    return app


def get_db():
    return SessionLocal()


def get_role_repository():
    """Application-wide RoleRepository, initialized from the store on first use."""
    repo = current_app.extensions.get('role_repository')
    if repo is None:
        from .services.roles import RoleRepository
        from .services.role_store import SqlRoleStore
        store = current_app.config.get('ROLE_STORE') or SqlRoleStore(get_db, current_app.config['ROLE_STORE_KEY'])
        repo = RoleRepository(store).initialize()
        current_app.extensions['role_repository'] = repo
    return repo
