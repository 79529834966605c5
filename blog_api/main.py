# blog_api/main.py  (entry point: uvicorn blog_api.main:app)
from dotenv import load_dotenv

# load the root .env before any settings / engine are built
load_dotenv()

from blog_api.backend.main import app as app  # noqa: E402
