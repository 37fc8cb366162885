"""API blueprint registration."""
from flask import Flask


def register_blueprints(app: Flask) -> None:
    """Register all API blueprints on the app.

    Args:
        app: The Flask application instance.
    """
    from .games import games_bp
    from .players import players_bp
    from .teams import teams_bp
    from .catalog import catalog_bp
    app.register_blueprint(games_bp, url_prefix="/api")
    app.register_blueprint(players_bp, url_prefix="/api")
    app.register_blueprint(teams_bp, url_prefix="/api")
    app.register_blueprint(catalog_bp, url_prefix="/api")
