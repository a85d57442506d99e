"""CORS for the study clients; origins, methods and headers come from settings."""

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from studyquest.config import Settings
from studyquest.middleware.request_id import REQUEST_ID_HEADER


def setup_cors(app: FastAPI, settings: Settings) -> None:
    # Credentialed requests cannot use a wildcard origin.
    allow_credentials = "*" not in settings.cors_origins
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
        expose_headers=[REQUEST_ID_HEADER],
    )
