import os
import datetime
from flask import Flask
from flask_cors import CORS
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix
import logging
from logging.handlers import RotatingFileHandler

load_dotenv()


def _database_url():
    """DATABASE_URL, then PG_URL, then a MySQL URL built from MYSQL_* parts."""
    db_url = os.environ.get("DATABASE_URL") or os.environ.get("PG_URL")
    if not db_url:
        required_vars = ["MYSQL_USER", "MYSQL_HOST", "MYSQL_PORT", "MYSQL_DATABASE"]
        missing_vars = [var for var in required_vars if not os.environ.get(var)]
        if missing_vars:
            raise ValueError(f"DB connection settings missing: set DATABASE_URL or {', '.join(missing_vars)}")

        MYSQL_USER = os.environ.get("MYSQL_USER")
        MYSQL_PASSWORD = os.environ.get("MYSQL_PASSWORD", "")
        MYSQL_HOST = os.environ.get("MYSQL_HOST")
        MYSQL_PORT = os.environ.get("MYSQL_PORT")
        MYSQL_DATABASE = os.environ.get("MYSQL_DATABASE")
        db_url = f"mysql+pymysql://{MYSQL_USER}:{MYSQL_PASSWORD}@{MYSQL_HOST}:{MYSQL_PORT}/{MYSQL_DATABASE}"

    if db_url.startswith('mysql://'):
        db_url = db_url.replace('mysql://', 'mysql+pymysql://', 1)
    elif db_url.startswith('postgres://'):
        db_url = db_url.replace('postgres://', 'postgresql+psycopg2://', 1)
    return db_url


def create_app(test_config=None):
    app = Flask(__name__)

    # --- Base settings ---
    app.config['SECRET_KEY'] = os.environ.get('SECRET_KEY', 'dev')
    app.config['JWT_ACCESS_TOKEN_EXPIRES'] = datetime.timedelta(
        hours=int(os.environ.get('JWT_ACCESS_TOKEN_HOURS', 24)))
    app.config['LOG_DIR'] = os.environ.get('LOG_DIR', 'logs')
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False

    jwt_secret_key = os.environ.get('JWT_SECRET_KEY')
    if jwt_secret_key:
        app.config['JWT_SECRET_KEY'] = jwt_secret_key

    if test_config:
        app.config.from_mapping(test_config)

    # --- Logging ---
    log_dir = app.config['LOG_DIR']
    if not os.path.exists(log_dir):
        os.makedirs(log_dir)
    file_handler = RotatingFileHandler(os.path.join(log_dir, 'favposts.log'), maxBytes=10240, backupCount=10)
    file_handler.setFormatter(logging.Formatter(
        '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'))
    file_handler.setLevel(logging.INFO)
    # The logger is shared by every app built in this process; keep a single file handler.
    for handler in list(app.logger.handlers):
        if isinstance(handler, RotatingFileHandler):
            app.logger.removeHandler(handler)
            handler.close()
    app.logger.addHandler(file_handler)
    app.logger.setLevel(logging.INFO)
    app.logger.info('favposts startup')

    if not app.config.get('JWT_SECRET_KEY'):
        app.logger.warning('JWT_SECRET_KEY is not set, falling back to the development key.')
        app.config['JWT_SECRET_KEY'] = 'local-dev-jwt-secret-key-for-testing'

    # --- Database ---
    if not app.config.get('SQLALCHEMY_DATABASE_URI'):
        app.config['SQLALCHEMY_DATABASE_URI'] = _database_url()

    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # --- Extensions ---
    from favposts.extensions import db, migrate, jwt, bcrypt
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    bcrypt.init_app(app)

    # --- API blueprints ---
    from favposts.routes.auth_routes import auth_bp
    from favposts.routes.user_routes import user_bp

    app.register_blueprint(auth_bp, url_prefix='/api/auth')
    app.register_blueprint(user_bp, url_prefix='/api/me')

    # --- Error handlers ---
    from favposts.errors import register_error_handlers
    register_error_handlers(app)

    # --- CLI commands ---
    @app.cli.command("init-db")
    def init_db_command():
        from favposts.initialize_content import initialize_content
        db.create_all()
        initialize_content()

    return app
