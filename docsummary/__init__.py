"""
docsummary ingests PDFs and web pages, summarizes them with Claude, caches
the results beside the sources and mirrors them to a Google Drive folder.
"""

from flask import Flask
from flask_cors import CORS

EXTENSION_KEY = "docsummary"


def create_app(config_class=None, state=None):
    app = Flask(__name__)

    if config_class:
        app.config.from_object(config_class)
    else:
        from docsummary.config import Config
        app.config.from_object(Config)

    CORS(app)

    if state is None:
        from docsummary.state import AppState
        state = AppState(app.config)
    app.extensions[EXTENSION_KEY] = state

    from docsummary.routes import api_bp
    app.register_blueprint(api_bp, url_prefix="/api")

    return app
