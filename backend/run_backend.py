"""Start the Pilot Manager API under uvicorn.

Host, port and auto-reload come from ``Settings`` (``BACKEND_HOST``,
``BACKEND_PORT`` and ``BACKEND_RELOAD`` in the environment or ``.env``).
"""

from pathlib import Path

import uvicorn

from pilot_manager.config import get_settings

BACKEND_DIR = Path(__file__).resolve().parent


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "pilot_manager.main:app",
        host=settings.backend_host,
        port=settings.backend_port,
        reload=settings.backend_reload,
        reload_dirs=[str(BACKEND_DIR / "pilot_manager")],
        app_dir=str(BACKEND_DIR),
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
