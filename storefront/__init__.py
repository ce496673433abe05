from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager, current_user
from flask_migrate import Migrate
import newrelic.agent

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()


def create_app(config=None):
    app = Flask(__name__)

    # Configuration
    from storefront.config import Config, SupabaseConfig
    app.config.from_object(Config)
    if config:
        app.config.update(config)

    # Setup logging
    from storefront.logging_config import setup_logging
    setup_logging(app)

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)
    migrate.init_app(app, db)

    login_manager.login_view = 'auth.login'

    # Persistence and storage clients used by the views
    from storefront.services.catalog import Catalog
    from storefront.services.storage import StorageClient
    app.extensions['catalog'] = Catalog(db.session)
    app.extensions['storage'] = StorageClient(SupabaseConfig.from_flask_config(app.config))

    from storefront.services.gate import install_gate
    install_gate(app)

    @app.before_request
    def add_newrelic_user_attributes():
        """Attach the signed-in admin to the New Relic transaction"""
        try:
            if current_user.is_authenticated:
                newrelic.agent.add_custom_attribute('enduser.id', str(current_user.id))
                newrelic.agent.add_custom_attribute('user', current_user.email)
        except Exception as e:
            # Avoid breaking the request if attribute setting fails
            app.logger.error(f'Failed to set New Relic custom attributes: {e}')

    # Register blueprints
    from storefront.routes import main, products, auth, admin
    app.register_blueprint(main.bp)
    app.register_blueprint(products.bp)
    app.register_blueprint(auth.bp)
    app.register_blueprint(admin.bp)

    from storefront.cli import register_commands
    register_commands(app)

    return app
