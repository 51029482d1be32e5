# =======================================================================================
# qr_access/__main__.py - Development Server
# =======================================================================================
import uvicorn

from .config import config


def main() -> None:
    uvicorn.run("qr_access.main:app", host=config.API_HOST, port=config.API_PORT,
                reload=config.API_DEBUG)


if __name__ == "__main__":
    main()
