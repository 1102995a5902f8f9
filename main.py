from barberhub.routes.auth import auth_bp
from barberhub.routes.barbers import barbers_bp
from barberhub.routes.bookings import bookings_bp
from barberhub.routes.payments import payments_bp
from barberhub.routes.reviews import reviews_bp
from flask import Flask, jsonify, send_from_directory
from flask_cors import CORS
from dotenv import load_dotenv
from flasgger import Swagger
from swagger__config import SWAGGER_CONFIG, SWAGGER_TEMPLATE
import logging
import os

load_dotenv()
from barberhub.config import Config  # noqa: E402
from barberhub.extensions import db  # noqa: E402
from barberhub.services.midtrans_service import MidtransClient  # noqa: E402


def create_app(overrides=None):
    print("Starting create_app()")
    app = Flask(__name__)
    try:
        print("Loading config...")
        app.config.from_object(Config)
        if overrides:
            app.config.update(overrides)
        print(f"Config items: {len(app.config)} items loaded")

        if not app.config.get("TESTING"):
            logging.basicConfig(level=logging.INFO)
        app.logger.setLevel(logging.INFO)

        CORS(app)
        print("CORS initialized")

        db.init_app(app)
        print("Database initialized")

        app.extensions["midtrans"] = MidtransClient.from_config(app.config)
        print(
            "Midtrans client initialized "
            f"({'production' if app.config.get('MIDTRANS_IS_PRODUCTION') else 'sandbox'})"
        )
        if not app.config.get("MIDTRANS_SERVER_KEY"):
            app.logger.warning("MIDTRANS_SERVER_KEY is not set; payment calls will fail")

        host = os.environ.get("API_HOST", "127.0.0.1:5001")
        swagger_template = SWAGGER_TEMPLATE.copy()
        swagger_template["host"] = host
        Swagger(app, config=SWAGGER_CONFIG, template=swagger_template)
        print("Swagger initialized - Access at /api/docs")

        print("Registering blueprints...")
        blueprints = [
            auth_bp,
            barbers_bp,
            bookings_bp,
            reviews_bp,
            payments_bp,
        ]
        for bp in blueprints:
            app.register_blueprint(bp)
            print(f"  ✓ {bp.name} registered")

        @app.route("/")
        def home():
            """
            Root endpoint - API status
            ---
            tags:
              - Utility
            responses:
              200:
                description: API is running
            """
            return {"status": "ok", "message": "Backend is running!"}, 200

        @app.route("/uploads/<path:filename>")
        def uploaded_file(filename):
            """
            Serve an uploaded image or proof file
            ---
            tags:
              - Utility
            parameters:
              - name: filename
                in: path
                type: string
                required: true
            responses:
              200:
                description: File contents
              404:
                description: File not found
            """
            return send_from_directory(app.config["UPLOAD_FOLDER"], filename)

        register_error_handlers(app)
        print(f"Total routes registered: {len(list(app.url_map.iter_rules()))}")

    except Exception as e:
        print(f"Error during app creation: {e}")
        import traceback

        print(f"Full traceback: {traceback.format_exc()}")
        raise

    print("create_app() completed successfully")
    return app


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(e):
        return jsonify({"status": "error", "message": "Route not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({"status": "error", "message": "Method not allowed"}), 405

    @app.errorhandler(413)
    def too_large(e):
        return jsonify({"status": "error", "message": "Uploaded file is too large"}), 413

    @app.errorhandler(500)
    def server_error(e):
        app.logger.error(f"Unhandled error: {e}")
        return jsonify({"status": "error", "message": "Internal server error"}), 500


app = create_app()

if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5001))
    app.run(
        host="0.0.0.0", port=port, debug=os.environ.get("FLASK_ENV") != "production"
    )
