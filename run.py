"""Local development server for the recipe marketplace API.

Usage:
    python run.py                 # http://localhost:5000
    PORT=8080 python run.py

Reads .env first, so DATABASE_URL / SUPABASE_* / JWT_SECRET_KEY can live
there. In production run the `app` object under a WSGI server instead,
e.g. `gunicorn run:app`.
"""

import os

from dotenv import load_dotenv

load_dotenv()  # must run before create_app() reads config

from app import create_app  # noqa: E402

app = create_app()

if __name__ == "__main__":
    app.run(debug=app.debug, host="0.0.0.0", port=int(os.environ.get("PORT", 5000)))
