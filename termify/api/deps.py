from __future__ import annotations

from termify.analysis.pipeline import AnalysisPipeline
from termify.settings.config import TermifySettings, load_settings
from termify.storage.store import ObjectStore, build_object_store


def get_settings() -> TermifySettings:
    return load_settings()


def get_pipeline() -> AnalysisPipeline:
    """Pipeline for one request, built from the current environment."""
    return AnalysisPipeline.from_settings(get_settings())


def get_store() -> ObjectStore:
    return build_object_store(get_settings().storage)
