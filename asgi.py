"""
asgi.py -- Application assembly for punchline.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about web/; web/routes.py only borrows the
response models from api/models.py.

Building the app reads Settings from the environment; without SESSION_SECRET
the import fails and the server refuses to start.

Run with:  uvicorn asgi:app --reload
"""

from api.main import create_app
from web.routes import router as web_router

app = create_app()

# Mount the web router here, not in api/main.py.
app.include_router(web_router, tags=["Web"])
