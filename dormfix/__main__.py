# dormfix/__main__.py
import uvicorn

from dormfix.config import Settings


def main() -> None:
    settings = Settings.from_env()
    uvicorn.run("dormfix.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
