"""Production runner: python -m src

uvicorn's own X-Forwarded-For rewriting is turned off; the rate limiter
resolves client IPs itself from TRUSTED_PROXY_HOPS.
"""

import uvicorn

from config.settings import settings


def main() -> None:
    uvicorn.run(
        "src.main:app",
        host=settings.HOST,
        port=settings.PORT,
        loop="uvloop",
        proxy_headers=False,
        access_log=False,
        log_level=settings.LOG_LEVEL.lower(),
    )


if __name__ == "__main__":
    main()
