import sys

from dotenv import load_dotenv

from cms.app import create_app
from cms.config import load_settings
from cms.errors import ConfigError, StoreError


load_dotenv()

try:
    settings = load_settings()
    app = create_app(settings)
except (ConfigError, StoreError) as e:
    # Startup configuration problems are the only errors allowed to end the process.
    print(f"[cms] fatal: {e}", file=sys.stderr)
    sys.exit(1)


if __name__ == "__main__":
    # Convenience for local runs: python cms_server.py --cms-debug
    import uvicorn

    uvicorn.run("cms_server:app", host=settings.host, port=settings.port, reload=False)
