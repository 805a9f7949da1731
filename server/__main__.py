import sys

import uvicorn

from backend import logger
from backend.errors import ConfigurationError
from server.api.deps import get_resolver, get_settings


def main():
    settings = get_settings()

    # Configuración inválida: el proceso no llega a servir tráfico
    try:
        get_resolver()
    except ConfigurationError as exc:
        logger.error(f"[Server] Configuration error: {exc}")
        sys.exit(2)

    logger.progress(f"[Server] Listening on http://{settings.host}:{settings.port}/manifest.json")

    uvicorn.run(
        "server.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == "__main__":
    main()
