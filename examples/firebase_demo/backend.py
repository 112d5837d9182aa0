from flask import Flask, g, jsonify
from flask_cors import CORS

from examples.firebase_demo.app_config import firebase_auth, settings


def create_app() -> Flask:
    """
    Create and configure the Flask application with Firebase authentication.

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    firebase_auth.init_app(app, url_prefix=settings.path_prefix)

    # The browser signs in with the Firebase JS SDK and posts its ID token here
    CORS(
        app,
        origins=[
            "http://localhost:5173",
            "http://127.0.0.1:5173",
        ],
        supports_credentials=True,
        allow_headers=["Content-Type", "Authorization"],
        methods=["GET", "POST", "OPTIONS"],
        max_age=3600,
    )

    @app.get("/api/me")
    @firebase_auth.require(allow_anonymous=False)
    def me():
        """Return the verified identity of the caller."""
        claims = g.firebase_claims
        user = firebase_auth.service.get_user_by_firebase_uid(claims.sub)
        return jsonify(
            {
                "uid": claims.sub,
                "email": claims.email,
                "provider": claims.sign_in_provider,
                "user": user.to_dict() if user else None,
            }
        ), 200

    @app.post("/api/sessions/cleanup")
    @firebase_auth.require(require_verified_email=True)
    def cleanup_sessions():
        """Remove every expired session."""
        removed = firebase_auth.service.cleanup_expired_sessions()
        return jsonify({"removed": removed}), 200

    @app.errorhandler(401)
    def unauthorized(error):
        """Handle unauthorized access errors."""
        return jsonify(
            {
                "status": "denied",
                "message": error.description,
                "authenticated": False,
            }
        ), 401

    @app.errorhandler(403)
    def forbidden(error):
        """Handle forbidden access errors."""
        return jsonify(
            {
                "status": "denied",
                "message": error.description,
                "authenticated": True,
            }
        ), 403

    @app.errorhandler(404)
    def not_found(error):
        """Handle not found errors."""
        return jsonify(
            {
                "status": "error",
                "message": "Resource not found.",
            }
        ), 404

    @app.errorhandler(500)
    def internal_error(error):
        """Handle internal server errors."""
        return jsonify(
            {
                "status": "error",
                "message": "An unexpected error occurred. Please try again later.",
            }
        ), 500

    return app


if __name__ == "__main__":
    create_app().run(port=5000, debug=True)
