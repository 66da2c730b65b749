import os
import logging
from flask import Flask
from flask_sqlalchemy import SQLAlchemy

# Instance ekstensi dibuat di luar factory agar bisa diimpor oleh models
db = SQLAlchemy()


def create_app(test_config=None):
    app = Flask(__name__)

    # Konfigurasi default
    app.config['SECRET_KEY'] = 'kunci-rahasia-eaststore-dev'
    app.config['SQLALCHEMY_DATABASE_URI'] = 'sqlite:///eaststore.db'
    app.config['SQLALCHEMY_TRACK_MODIFICATIONS'] = False
    app.config['LOG_LEVEL'] = 'INFO'
    app.config['TIMEZONE'] = 'Asia/Jakarta'
    app.config['ADMIN_USERNAME'] = 'admin'
    app.config['ADMIN_PASSWORD'] = 'password123'

    # Override dari environment
    if os.environ.get('SECRET_KEY'):
        app.config['SECRET_KEY'] = os.environ['SECRET_KEY']
    if os.environ.get('DATABASE_URL'):
        app.config['SQLALCHEMY_DATABASE_URI'] = os.environ['DATABASE_URL']
    for key in ('LOG_LEVEL', 'TIMEZONE', 'ADMIN_USERNAME', 'ADMIN_PASSWORD'):
        if os.environ.get(key):
            app.config[key] = os.environ[key]

    if test_config:
        app.config.update(test_config)

    logging.basicConfig(level=app.config['LOG_LEVEL'])

    db.init_app(app)

    with app.app_context():
        from . import models
        from . import commands
        from .routes import public_bp, admin_bp

        app.register_blueprint(public_bp)
        app.register_blueprint(admin_bp)

        app.cli.add_command(commands.init_db_command)
        app.cli.add_command(commands.seed_db_command)
        app.cli.add_command(commands.create_admin_command)

    return app
