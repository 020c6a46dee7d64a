"""Run the annotator API with uvicorn: ``python -m annotator``."""

import uvicorn

from annotator.config import get_settings


def main() -> None:
    settings = get_settings()
    uvicorn.run("annotator.main:app", host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
