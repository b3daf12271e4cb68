"""Expose `app` for Gunicorn while delegating CLI use to `cli.py`.

A deployment that runs `gunicorn app:app` gets the Flask application from
`web_app.py`. Running `python app.py` still works as the CLI.
"""

from web_app import app as app  # exported WSGI app for Gunicorn


if __name__ == "__main__":
    # Delegate to the CLI entrypoint when run as a script
    import sys

    from cli import main

    sys.exit(main())
