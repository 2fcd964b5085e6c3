"""Local development entry point.

Usage:
    python run.py

Reads .env, builds the app for FLASK_ENV (default "development") and serves
it on port 5001. Use `flask --app run` for the CLI commands
(seed-admin, deliver-notifications, expire-trials).
"""

from dotenv import load_dotenv

load_dotenv()  # Load .env before the config classes read os.environ

from sitewizard import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=True, host="0.0.0.0", port=5001)
