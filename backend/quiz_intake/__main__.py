"""Entry point for running the quiz-intake server."""
from __future__ import annotations

import uvicorn

from .api import create_app
from .core.settings import load_settings
from .infra.instrumentation import configure_instrumentation

settings = load_settings()
app = create_app(settings)
configure_instrumentation(environment=settings.environment, app=app)


def main() -> None:
    """Run the quiz-intake server."""
    # Reload needs an import string; otherwise serve the app built above.
    uvicorn.run(
        'quiz_intake.__main__:app' if settings.reload else app,
        host=settings.host,
        port=settings.port,
        reload=settings.reload,
    )


if __name__ == '__main__':
    main()
